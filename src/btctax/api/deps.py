from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from btctax.config import Settings
from btctax.container import Container


@inject
def get_settings(settings: Settings = Depends(Provide[Container.settings])) -> Settings:
    return settings
