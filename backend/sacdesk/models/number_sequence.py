from sqlmodel import Field, SQLModel


class NumberSequence(SQLModel, table=True):
    """Named counter handing out display numbers."""

    __tablename__ = "number_sequences"

    name: str = Field(primary_key=True, max_length=50)
    last_value: int = Field(default=0, nullable=False)
