from pydantic import BaseModel, ConfigDict, Field


class CommandResult(BaseModel):
    """Single return channel of every simulated command."""

    model_config = ConfigDict(populate_by_name=True)

    output: str = ""  # Text printed by the simulated tool
    is_error: bool = Field(alias="isError", default=False)  # True when the tool would exit non-zero

    @classmethod
    def ok(cls, output: str = "") -> "CommandResult":
        return cls(output=output, is_error=False)

    @classmethod
    def error(cls, output: str) -> "CommandResult":
        return cls(output=output, is_error=True)
