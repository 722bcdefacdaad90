# ABOUTME: Tests for the typed payload schema and its double-decoding helpers
# ABOUTME: Absent structure must come back as None, never as an exception

from zenless_harvest.extraction.payload import (
    Component,
    InfoEntry,
    LevelEntry,
    LevelStatRow,
    RawPayload,
    decode_component,
    decode_list,
    unwrap_embedded_value,
)


class TestRawPayload:
    def test_find_component_first_in_page_order(self, payload_factory):
        payload = RawPayload.model_validate(payload_factory())

        component = payload.find_component("baseInfo")

        assert component is not None
        assert component.component_id == "baseInfo"

    def test_find_missing_component(self, payload_factory):
        payload = RawPayload.model_validate(payload_factory())

        assert payload.find_component("does_not_exist") is None

    def test_numeric_page_id_coerced(self):
        payload = RawPayload.model_validate({"data": {"page": {"id": 28, "name": "x"}}})

        assert payload.page.id == "28"

    def test_filter_values_list_is_tolerated(self):
        payload = RawPayload.model_validate({"data": {"page": {"id": "1", "filter_values": []}}})

        assert payload.filter_value("agent_rarity") is None

    def test_missing_page(self):
        payload = RawPayload.model_validate({"retcode": 0})

        assert payload.page is None
        assert payload.find_component("baseInfo") is None
        assert payload.filter_values("agent_rarity") == []


class TestDecoding:
    def test_decode_invalid_json(self):
        assert decode_component(Component(component_id="baseInfo", data="{not json")) is None

    def test_decode_non_object(self):
        assert decode_component(Component(component_id="baseInfo", data="[1, 2]")) is None

    def test_decode_absent(self):
        assert decode_component(None) is None
        assert decode_list(None, InfoEntry) is None

    def test_decode_list_without_list_key(self):
        assert decode_list(Component(data='{"other": []}'), InfoEntry) is None

    def test_decode_list_skips_non_objects(self):
        entries = decode_list(Component(data='{"list": [{"key": "名前", "value": ["エレン"]}, 3]}'), InfoEntry)

        assert len(entries) == 1
        assert entries[0].first == "エレン"

    def test_info_entry_accepts_values_and_strings(self):
        assert InfoEntry(key="a", values=["x", ""]).items == ["x"]
        assert InfoEntry(key="a", value="y").items == ["y"]
        assert InfoEntry(key="a").first is None

    def test_level_row_keeps_first_stat_occurrence(self):
        entry = LevelEntry.model_validate(
            {"key": "10", "combatList": [{"key": "HP", "values": ["1", "2"]}, {"key": "HP", "values": ["3", "4"]}]}
        )

        row = LevelStatRow.from_entry(entry)

        assert row.level_key == "10"
        assert row.stat_entries == {"HP": ["1", "2"]}

    def test_combat_values_stringified(self):
        entry = LevelEntry.model_validate({"key": "1", "combatList": [{"key": "HP", "values": [600, None]}]})

        assert entry.combat_list[0].values == ["600", ""]


class TestEmbeddedValues:
    def test_embedded_json_names(self):
        value = '$[{"ep_id":29,"name":"エレン・ジョー","menuId":"agent"}]$'

        assert unwrap_embedded_value(value) == ["エレン・ジョー"]

    def test_plain_value_strips_html(self):
        assert unwrap_embedded_value("<p>邪兎屋</p>") == ["邪兎屋"]

    def test_malformed_embedded_json(self):
        assert unwrap_embedded_value("$[{broken]$") == []
