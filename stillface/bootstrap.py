"""
Application Wiring

Builds the adapter -> DAO -> model chain from settings. This is the only
place that decides which backend is used; everything downstream receives
its collaborators explicitly.

Usage:
    app = bootstrap()
    app.model.code_list
    app.dao.insert_new_code(Code(name="Smile"))
    app.model.refresh_codes()
"""

import logging
from dataclasses import dataclass
from typing import Optional

from stillface.adapters import BaseAdapter, adapter_from_settings
from stillface.cache import StillFaceModel
from stillface.core.config import Settings, get_settings
from stillface.domain import StillFaceDAO
from stillface.shared.exceptions import ErrorCode, StillFaceError

logger = logging.getLogger(__name__)


class BootstrapError(StillFaceError):
    """The store could not be prepared or the model could not be loaded."""
    default_code = ErrorCode.ERR_CONNECTION_FAILED


@dataclass
class StillFaceApp:
    """The wired application objects."""
    settings: Settings
    adapter: BaseAdapter
    dao: StillFaceDAO
    model: StillFaceModel

    def close(self) -> None:
        """Release the adapter's engine."""
        self.adapter.dispose()


def create_dao(settings: Optional[Settings] = None) -> StillFaceDAO:
    """
    Create a DAO for the configured backend without touching the store.

    Raises:
        ConfigurationError: If the settings are incomplete for the mode
        ConnectionError: If the adapter cannot be created
    """
    settings = settings or get_settings()
    adapter = adapter_from_settings(settings)
    return StillFaceDAO(adapter)


def bootstrap(settings: Optional[Settings] = None, load_model: bool = True) -> StillFaceApp:
    """
    Wire the application and make sure the schema exists.

    Args:
        settings: Settings to use (defaults to get_settings())
        load_model: Initialize the model from the store

    Returns:
        StillFaceApp with a ready DAO and (optionally) initialized model

    Raises:
        BootstrapError: If the tables cannot be created or the model
            cannot be initialized
    """
    settings = settings or get_settings()
    dao = create_dao(settings)

    if not dao.is_database_initialized():
        logger.info(f"Database not initialized, creating tables ({dao.mode.value})")
        if not dao.create_tables():
            raise BootstrapError(
                "Unable to create StillFace tables",
                details={"mode": dao.mode.value, "target": dao.adapter.describe()},
                suggestion="Check the database permissions and connection settings",
            )

    model = StillFaceModel()
    if load_model and not model.initialize(dao, cache_code_data=settings.model_cache):
        raise BootstrapError(
            "Unable to load StillFace data into the model",
            details={"mode": dao.mode.value, "target": dao.adapter.describe()},
        )

    logger.info(f"{settings.app_name} ready ({dao.mode.value}: {dao.adapter.describe()})")
    return StillFaceApp(settings=settings, adapter=dao.adapter, dao=dao, model=model)
