import pytest

from divination import storage
from divination.errors import ProviderError
from divination.models import GenerationRequest, GenerationResult
from divination.providers.registry import ProviderRegistry


class FakeProvider:
    """Records every request; answers from a script or with a fixed reply."""

    def __init__(self, name="fake", reply="A fake interpretation.", fail=None):
        self.name = name
        self.reply = reply
        self.fail = fail
        self.requests = []

    @property
    def calls(self):
        return len(self.requests)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        if self.fail is not None:
            raise self.fail
        return GenerationResult(text=self.reply, provider=self.name, model="fake-1")


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def registry(fake_provider):
    r = ProviderRegistry()
    r.register("fake", fake_provider)
    r.set_provider("fake")
    return r


@pytest.fixture
def failing_registry():
    r = ProviderRegistry()
    r.register("broken", FakeProvider(name="broken", fail=ProviderError("backend down", provider="broken")))
    r.set_provider("broken")
    return r


@pytest.fixture(autouse=True)
def _clear_sessions():
    yield
    storage.clear()


@pytest.fixture
def make_provider():
    return FakeProvider
