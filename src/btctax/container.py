from dependency_injector import containers, providers

from btctax.config import Settings


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["btctax.api.deps"])

    settings = providers.Singleton(Settings)
