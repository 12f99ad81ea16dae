from pydantic import BaseModel

from mapify.utils.settings import DEFAULT_ID_FIELD, SettingsResolver


class Plain(BaseModel):
    id: int


class Configured(BaseModel):
    code: str

    class Settings:
        id_field = "code"
        trace_name = "products"


class PartiallyConfigured(BaseModel):
    id: int

    class Settings:
        trace_name = "partial"


class TestSettingsResolver:
    def test_defaults(self):
        assert SettingsResolver.get_id_field(Plain) == DEFAULT_ID_FIELD == "id"
        assert SettingsResolver.get_trace_name(Plain) == "Plain"

    def test_overrides(self):
        assert SettingsResolver.get_id_field(Configured) == "code"
        assert SettingsResolver.get_trace_name(Configured) == "products"

    def test_partial_settings(self):
        assert SettingsResolver.get_id_field(PartiallyConfigured) == "id"
        assert SettingsResolver.get_trace_name(PartiallyConfigured) == "partial"
