"""
Configuration validation utilities.
"""

from typing import Dict, Any, List
from urllib.parse import urlparse
from pydantic import ValidationError

from ...domain.models import PATH_SEPARATOR
from ...infrastructure.exceptions import ConfigurationError
from .models import ConsulConfigurationOptions


class ConfigurationValidationError(ConfigurationError):
    """Exception raised when the options do not match their schema."""

    def __init__(self, message: str, validation_errors: List[Dict[str, Any]]):
        super().__init__(
            message,
            ConfigurationError.INVALID_OPTIONS,
            validation_errors=validation_errors,
            error_code="CONFIGURATION_VALIDATION_ERROR"
        )
        self.validation_errors = validation_errors

    def get_detailed_message(self) -> str:
        """Get a detailed error message with all validation errors."""
        lines = [self.message]
        lines.append("Validation errors:")

        for error in self.validation_errors:
            location = " -> ".join(str(loc) for loc in error.get('loc', []))
            msg = error.get('msg', 'Unknown error')
            lines.append(f"- {location}: {msg}")

        return "\n".join(lines)


class ConfigurationValidator:
    """Validates provider options and raises with a precise reason."""

    @staticmethod
    def parse_options(data: Dict[str, Any]) -> ConsulConfigurationOptions:
        """
        Build options from raw data and validate them.

        Raises:
            ConfigurationValidationError: If the data does not match the schema
            ConfigurationError: If the address or a folder is invalid
        """
        try:
            options = ConsulConfigurationOptions(**data)
        except ValidationError as e:
            errors = [
                {'loc': list(error['loc']), 'msg': error['msg'], 'type': error['type']}
                for error in e.errors()
            ]
            raise ConfigurationValidationError("Configuration validation failed", errors) from e
        return ConfigurationValidator.validate_options(options)

    @staticmethod
    def validate_options(options: ConsulConfigurationOptions) -> ConsulConfigurationOptions:
        """
        Validate options, returning a copy with a normalized address.

        Raises:
            ConfigurationError: INVALID_ADDRESS or INVALID_FOLDER
        """
        address = ConfigurationValidator.normalize_address(options.address)

        if options.root_folder.strip() and not options.root_folder.endswith(PATH_SEPARATOR):
            raise ConfigurationError(
                f"Folder must end with \"{PATH_SEPARATOR}\": '{options.root_folder}'",
                ConfigurationError.INVALID_FOLDER,
                context={'folder': options.root_folder}
            )

        for folder in options.folders:
            if not folder.endswith(PATH_SEPARATOR):
                raise ConfigurationError(
                    f"Folder must end with \"{PATH_SEPARATOR}\": '{folder}'",
                    ConfigurationError.INVALID_FOLDER,
                    context={'folder': folder}
                )

        return options.model_copy(update={'address': address})

    @staticmethod
    def normalize_address(address: str) -> str:
        """Return ``address`` as an http(s) URL without a trailing slash."""
        if not address or not address.strip():
            raise ConfigurationError(
                "The address can't be empty.",
                ConfigurationError.INVALID_ADDRESS
            )

        address = address.strip()
        if "://" not in address:
            address = f"http://{address}"

        parsed = urlparse(address)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ConfigurationError(
                f"Invalid KV endpoint address: '{address}'",
                ConfigurationError.INVALID_ADDRESS,
                context={'address': address}
            )
        return address.rstrip('/')
