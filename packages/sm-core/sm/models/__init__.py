from sm.models.checkpoint import Checkpoint
from sm.models.state import Step, StepResult

__all__ = ["Checkpoint", "Step", "StepResult"]
