from dependency_injector import containers, providers

from taxdecl.config import Settings
from taxdecl.db.session import build_engine, build_session_factory
from taxdecl.domain.clock import SystemClock


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["taxdecl.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    clock = providers.Singleton(SystemClock)
