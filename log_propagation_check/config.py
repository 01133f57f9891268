"""Configuration for the verifier and the remote probe."""

import re
from collections.abc import Sequence

from pydantic import Field, SecretStr, field_validator

from log_propagation_check.models.base import Model


class LogPathRule(Model):
    """Maps a platform description pattern to the log file it writes to."""

    pattern: str = Field(..., description="Case-insensitive regex on lsb_release")
    path: str = Field(..., description="Log file the platform writes syslog to")

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        re.compile(value)
        return value


class VerifierConfig(Model):
    """Tuning knobs for a log propagation check."""

    receiver_role: str = "Logging"
    sender_role: str = "Base"
    protocol_input: str = "logging/protocol"
    remote_server_input: str = "logging/remote_server"

    launch_timeout: float = Field(default=1800, gt=0)
    state_poll_interval: float = Field(default=30, gt=0)

    settle_delay: float = Field(default=5, ge=0)
    delivery_timeout: float = Field(default=60, ge=0)
    search_interval: float = Field(default=2, gt=0)
    search_backoff: float = Field(default=2, ge=1)
    max_search_interval: float = Field(default=15, gt=0)

    log_paths: Sequence[LogPathRule] = Field(
        default_factory=list,
        description="Extra rules checked before the builtin platform table",
    )
    reset_deployment: bool = Field(
        default=True,
        description="Stop the role servers before each run so inputs take effect",
    )


class SSHSettings(Model):
    """Connection settings for running commands over SSH."""

    user: str = "root"
    port: int = 22
    key_path: str | None = None
    password: SecretStr | None = None
    connect_timeout: float = 30
    command_timeout: float = 60
