"""
@file startup.py
@description
Boot-time composition of the application. The readonly and auth_on flags are
read exactly once here and turned into a StartupPlan; the request pipeline and
the route registration only follow the plan.

    readonly=False, auth_on=False  -> CENSUS          edit routes, no gate
    readonly=False, auth_on=True   -> CENSUS_GATED    edit routes, basic auth
    readonly=True,  auth_on=False  -> READONLY        display routes only
    readonly=True,  auth_on=True   -> READONLY_GATED  display routes, basic auth
"""

import enum
from dataclasses import dataclass

from . import pipeline


class StartupMode(enum.Enum):
    CENSUS = (False, False)
    CENSUS_GATED = (False, True)
    READONLY = (True, False)
    READONLY_GATED = (True, True)

    @property
    def readonly(self):
        return self.value[0]

    @property
    def gated(self):
        return self.value[1]

    @classmethod
    def from_config(cls, config):
        return cls((bool(config.readonly), bool(config.auth_on)))


@dataclass(frozen=True)
class StartupPlan:
    mode: StartupMode
    request_stages: tuple
    response_stages: tuple
    census_routes: bool
    sessions: bool
    basic_auth: bool
    access_log: bool

    @property
    def readonly(self):
        return self.mode.readonly


def plan_for(config):
    """
    Decide the pipeline stages and optional subsystems for a configuration.

    Args:
        config (Config): The boot configuration.

    Returns:
        StartupPlan: The composition used for the whole process lifetime.
    """
    mode = StartupMode.from_config(config)

    response_stages = [pipeline.cors_headers]
    if mode.readonly:
        response_stages.append(pipeline.cache_control(config.cache_max_age))

    request_stages = []
    if config.testing:
        request_stages.append(pipeline.test_user_stage(config))
    request_stages.append(pipeline.locale_stage(config))
    if mode.readonly:
        request_stages.append(pipeline.readonly_session_stage)
    request_stages.append(pipeline.template_globals_stage(config))

    return StartupPlan(
        mode=mode,
        request_stages=tuple(request_stages),
        response_stages=tuple(response_stages),
        census_routes=not mode.readonly,
        sessions=not mode.readonly,
        basic_auth=mode.gated,
        access_log=not config.testing,
    )
