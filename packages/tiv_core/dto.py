from pydantic import BaseModel, ConfigDict


class BaseDTO(BaseModel):
    """
    Base class for every DTO in the TIV project.

    Features:
        - from_attributes=True (builds from ORM rows / plain objects)
        - str_strip_whitespace=True (trims incoming strings)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        populate_by_name=True
    )
