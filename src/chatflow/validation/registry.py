"""Thread-safe registry for answer validators"""

import logging
from collections.abc import Callable
from threading import Lock

logger = logging.getLogger(__name__)

# Global state guarded by a lock
_validators: dict[str, Callable[[str], bool]] = {}
_validators_lock = Lock()


class ValidatorRegistry:
    """
    Thread-safe registry for question answer validators.

    Validators receive the raw text typed by the contact and return whether
    it is acceptable. Kinds without a registered validator accept anything.
    """

    @classmethod
    def register(cls, name: str) -> Callable:
        """
        Register a validator function.

        Usage:
            @ValidatorRegistry.register("cep")
            def validate_cep(value: str) -> bool:
                return len(re.sub(r"\\D", "", value)) == 8

        Args:
            name: Kind referenced by question nodes (``validation`` field)

        Returns:
            Decorator function
        """

        def decorator(func: Callable[[str], bool]) -> Callable[[str], bool]:
            with _validators_lock:
                if name in _validators:
                    logger.warning(
                        f"Validator '{name}' already registered, overwriting",
                        extra={"validator_name": name},
                    )
                _validators[name] = func
                logger.debug(
                    f"Registered validator '{name}'",
                    extra={"validator_name": name},
                )
            return func

        return decorator

    @classmethod
    def get(cls, name: str) -> Callable[[str], bool]:
        """
        Get validator by name (thread-safe read).

        Raises:
            ValueError: If validator is not registered
        """
        with _validators_lock:
            if name not in _validators:
                raise ValueError(
                    f"Validator '{name}' not registered. Available: {list(_validators.keys())}"
                )
            return _validators[name]

    @classmethod
    def validate(cls, name: str | None, value: str) -> bool:
        """
        Validate raw input using the named validator.

        Args:
            name: Validator kind; empty or unknown kinds always pass
            value: Raw user input

        Returns:
            True if valid, False otherwise
        """
        if not name:
            return True
        with _validators_lock:
            validator = _validators.get(name)
        if validator is None:
            return True
        return validator(value)

    @classmethod
    def list_validators(cls) -> list[str]:
        """List all registered validator names (thread-safe)."""
        with _validators_lock:
            return list(_validators.keys())

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if validator is registered (thread-safe)."""
        with _validators_lock:
            return name in _validators

    @classmethod
    def unregister(cls, name: str) -> None:
        """
        Remove a validator (thread-safe).

        Warning: This is primarily for testing.
        """
        with _validators_lock:
            _validators.pop(name, None)


def validate(kind: str | None, raw_input: str) -> bool:
    """Module-level shortcut for ``ValidatorRegistry.validate``."""
    return ValidatorRegistry.validate(kind, raw_input)
