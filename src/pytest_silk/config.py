"""Runtime settings.

Settings are read from keyword arguments first and from `SILK_*`
environment variables second.
"""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from pytest_silk.models import SettingsModel

ENV_PREFIX = 'SILK_'


class FailurePolicy(StrEnum):
    """What the runner does after a failed request."""

    #: Stop the whole run at the first failure.
    ABORT = 'abort'
    #: Run every request and collect all outcomes.
    CONTINUE = 'continue'


class RunnerSettings(SettingsModel):
    """Configuration of a run."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
    )

    root_url: str | None = Field(
        default=None,
        title='Root URL',
        description='URL prepended to every request path, e.g. `http://localhost:8080`.',
    )

    policy: FailurePolicy = Field(
        default=FailurePolicy.ABORT,
        title='Failure policy',
    )

    strict_values: bool = Field(
        default=False,
        title='Strict values',
        description='Reject expectation values that are not valid JSON literals.',
    )
