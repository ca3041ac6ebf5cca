from dataclasses import dataclass


@dataclass(frozen=True)
class Notification:
    """A toast shown to the user after an action."""

    title: str
    description: str
    variant: str = "default"  # default | destructive
