"""
Tagged actor choice: a household member or an external contact.

Payer, counterparty and participant are stored as two nullable columns
(user id, contact id) but handled in code as exactly one of these variants.
"""

from typing import Annotated, Optional, Tuple, Union, Literal

from pydantic import BaseModel, ConfigDict, Field


class Member(BaseModel):
    """A registered user who belongs to the household."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["member"] = "member"
    user_id: str = Field(..., min_length=1)


class ExternalContact(BaseModel):
    """A contact of the household without a user account."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["contact"] = "contact"
    contact_id: str = Field(..., min_length=1)


Actor = Annotated[Union[Member, ExternalContact], Field(discriminator="kind")]


def actor_from_columns(user_id: Optional[str], contact_id: Optional[str]) -> Optional[Union[Member, ExternalContact]]:
    """Build the actor stored in a (user_id, contact_id) column pair."""
    if user_id and contact_id:
        raise ValueError("actor cannot be both a user and a contact")
    if user_id:
        return Member(user_id=user_id)
    if contact_id:
        return ExternalContact(contact_id=contact_id)
    return None


def actor_to_columns(actor: Optional[Union[Member, ExternalContact]]) -> Tuple[Optional[str], Optional[str]]:
    """Split an actor into its (user_id, contact_id) column pair."""
    if actor is None:
        return None, None
    if isinstance(actor, Member):
        return actor.user_id, None
    return None, actor.contact_id
