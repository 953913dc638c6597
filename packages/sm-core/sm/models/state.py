"""Step models: the units of work a machine is made of.

A machine is a closed set of ``Step`` subclasses joined into a
discriminated union on their ``kind`` field::

    class FirstToss(Step):
        kind: Literal["first_toss"] = "first_toss"

        def next(self) -> Step | None:
            return SecondToss(first_coin=Coin.toss())

    Machine = Annotated[Union[FirstToss, SecondToss], Field(discriminator="kind")]

The ``kind`` tag travels with the encoded state, so a checkpoint can be
decoded back into the right variant without any outside hints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Step(BaseModel):
    """A single resumable step.

    Subclasses declare a ``kind`` literal and override ``next()``. Any
    exception raised from ``next()`` is a step failure: the engine rolls the
    step back to its pre-call snapshot and records the error.
    """

    model_config = ConfigDict(extra="forbid")

    kind: str

    def next(self) -> Optional[Step]:
        """Do this step's work and return the next step, or ``None`` when done."""
        raise NotImplementedError(f"{type(self).__name__} does not implement next()")


StepResult = Optional[Step]

