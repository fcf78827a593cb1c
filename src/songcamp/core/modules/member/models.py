from pydantic import BaseModel


class Member(BaseModel):
    """Community member, used as mention candidate and as the acting identity."""

    name: str
    email: str
    picture: str | None = None
