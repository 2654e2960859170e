"""
Configuration data models with validation.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from ...domain.models import PrefixSpec


class LoggingConfiguration(BaseModel):
    """Logging configuration with validation."""
    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="json", pattern="^(json|text)$")

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        return v.upper() if isinstance(v, str) else v


class ConsulConfigurationOptions(BaseModel):
    """
    Construction-time options of the Consul configuration provider.

    ``folders`` are overlaid in the given order: a key in a later folder
    overrides the same key in an earlier one. Each folder is relative to
    ``root_folder``.
    """
    address: str = ""
    token: Optional[str] = None
    datacenter: Optional[str] = None
    root_folder: str = ""
    folders: List[str] = Field(default_factory=list)
    blocking_query_wait: float = Field(default=180.0, gt=0)
    logging_config: LoggingConfiguration = Field(default_factory=LoggingConfiguration)

    @field_validator('address', 'root_folder', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v

    @field_validator('folders', mode='before')
    @classmethod
    def split_folders(cls, v):
        """Accept a comma separated string as well as a list."""
        if v is None:
            return []
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v

    def prefix_specs(self) -> List[PrefixSpec]:
        """Watched prefixes with their priority, lowest first."""
        if not self.folders:
            return [PrefixSpec(prefix=self.root_folder, priority=0)]
        return [
            PrefixSpec(prefix=self.root_folder + folder, priority=index)
            for index, folder in enumerate(self.folders)
        ]
