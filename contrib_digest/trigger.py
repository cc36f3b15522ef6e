"""
Parse a chat message of the form ``<trigger> <owner> <repo> <user>``.
"""

from pydantic import BaseModel, ConfigDict


class PreconditionViolation(Exception):
    """The trigger text does not name an owner, a repo and a user."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TriggerRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    user: str


def parse_trigger(text: str, trigger_word: str) -> TriggerRequest:
    """
    Read the first three words after the first ``trigger_word``.

    Extra words after the user name are ignored.

    Raises:
        PreconditionViolation: If the trigger word is missing or fewer than
            three words follow it.
    """
    if trigger_word not in text:
        raise PreconditionViolation(f"Message does not contain '{trigger_word}'.")

    parts = text.split(trigger_word)[1].split()
    if len(parts) < 3:
        raise PreconditionViolation(
            f"Input should contain '{trigger_word} <github_owner> <github_repo> <user_name>'"
        )

    owner, repo, user = parts[:3]
    return TriggerRequest(owner=owner, repo=repo, user=user)
