from types import SimpleNamespace

from src.models.domain import Asset


class FakeMessages:
    """Stands in for ``anthropic.Anthropic().messages``."""

    def __init__(self, responses=None, error=None):
        self.responses = list(responses or [])
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


class FakeAnthropic:
    def __init__(self, responses=None, error=None):
        self.messages = FakeMessages(responses, error)


def text_response(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


def tool_response(name, payload):
    return SimpleNamespace(content=[SimpleNamespace(type="tool_use", name=name, input=payload)])


def make_asset(value, rate, years, asset_type="investment", asset_id=None, client_id="c1"):
    return Asset(
        id=asset_id or f"a-{asset_type}-{value}-{years}",
        client_id=client_id,
        name=f"{asset_type} holding",
        asset_type=asset_type,
        current_value=value,
        growth_rate=rate,
        projection_years=years,
    )
