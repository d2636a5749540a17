import warnings

import pytest

from drivingschool.core.config import Settings
from drivingschool.main import create_app


class _RecordingEngine:
    def __init__(self) -> None:
        self.disposed = False

    async def dispose(self) -> None:
        self.disposed = True


def test_create_app_emits_no_deprecation_warning(settings: Settings) -> None:
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        create_app(settings)
    assert not [w for w in caught if "on_event" in str(w.message)]


@pytest.mark.asyncio
async def test_lifespan_disposes_engine(settings: Settings) -> None:
    application = create_app(settings)
    real_engine = application.state.engine
    recorder = _RecordingEngine()
    application.state.engine = recorder

    async with application.router.lifespan_context(application):
        assert recorder.disposed is False
    assert recorder.disposed is True

    await real_engine.dispose()
