"""Constraint catalog response models."""

from pydantic import BaseModel, Field

from lamachine.constraints.models import Constraint, ConstraintParameter


class ConstraintResponse(BaseModel):
    """Public description of one constraint."""

    id: str
    name: str
    description: str
    parameter: ConstraintParameter
    word_based: bool = Field(description="Validated only on word boundaries")
    streamable: bool = Field(description="Checked while the text is still arriving")
    length_sequence: bool = Field(description="Generated one word at a time")

    @classmethod
    def from_constraint(cls, constraint: Constraint) -> "ConstraintResponse":
        return cls(
            id=constraint.id,
            name=constraint.name,
            description=constraint.description,
            parameter=constraint.parameter,
            word_based=constraint.word_based,
            streamable=constraint.streamable,
            length_sequence=constraint.length_sequence,
        )


class ConstraintListResponse(BaseModel):
    items: list[ConstraintResponse]
