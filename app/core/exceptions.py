"""
Application-level exception types.

Each user-visible failure of an analysis run maps to one of these, so the
HTTP layer can translate them into status codes without string matching.
"""

from __future__ import annotations


class AppError(Exception):
    """Base exception for all application errors."""

    status_code = 500

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        self.detail = detail or message
        super().__init__(message)


class ConfigurationError(AppError):
    """Raised when required configuration is missing or invalid."""

    status_code = 503


class EmptyTextError(AppError):
    """Raised when an analysis is started without any novel text."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Please provide the novel text before starting the analysis.")


class NoCharactersFoundError(AppError):
    """Raised when character identification yields no names."""

    status_code = 422

    def __init__(self) -> None:
        super().__init__("No characters could be identified from the text; try providing more content.")


class CharacterDetailError(AppError):
    """Raised when a single character's profile could not be generated."""

    status_code = 502

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(
            f"Failed to build profile for {name}: {reason}",
            detail=f"Failed to build profile for {name}",
        )
        self.name = name
        self.reason = reason


class InvalidTransitionError(AppError):
    """Raised when an analysis control is used in a state that does not offer it."""

    status_code = 409

    def __init__(self, action: str, phase: str) -> None:
        super().__init__(f"Cannot {action} while analysis is {phase}")
        self.action = action
        self.phase = phase


class EntityNotFoundError(AppError):
    """Raised when an entity cannot be found."""

    status_code = 404

    def __init__(self, entity_type: str, entity_id: object) -> None:
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            detail=f"{entity_type} not found",
        )
        self.entity_type = entity_type
        self.entity_id = entity_id


class ProfileNotFoundError(EntityNotFoundError):
    """Raised when no character profile has the requested id."""

    def __init__(self, profile_id: str) -> None:
        super().__init__("Character profile", profile_id)
