"""Tests for transformation modules."""

import logging
from datetime import date

import pytest

from awhere_api.endpoints.descriptor import ResourceFamily
from awhere_api.exceptions import ParseError
from awhere_api.transform.checks import (
    check_daily_return,
    check_forecast_return,
    check_norms_return,
    check_soils_return,
    expected_norm_days,
)
from awhere_api.transform.flatten import flatten_json
from awhere_api.transform.normalize import (
    RecordSchema,
    Table,
    is_metadata_column,
    locate_records,
    normalize_response,
)
from conftest import (
    field_document,
    forecasts_document,
    norms_document,
    observation_record,
    observations_document,
    soils_day,
    soils_document,
)


class TestFlattenJson:
    """Tests for JSON flattening."""

    def test_flatten_simple_nested(self):
        """Test flattening simple nested dict."""
        nested = {"temperatures": {"max": 31.2, "min": 18.4}}
        result = flatten_json(nested)

        assert result == {"temperatures.max": 31.2, "temperatures.min": 18.4}

    def test_flatten_deep_nested(self):
        """Test flattening deeply nested dict."""
        result = flatten_json(field_document())

        assert result["id"] == "field123"
        assert result["centerPoint.latitude"] == 39.8282
        assert result["_links.self.href"] == "/v2/fields/field123"

    def test_flatten_preserves_lists(self):
        """Test that lists are preserved."""
        record = {"date": "2024-06-15", "soilMoisture": [{"depth": "0-0.1 m"}]}
        result = flatten_json(record)

        assert result["soilMoisture"] == [{"depth": "0-0.1 m"}]

    def test_flatten_empty_object_becomes_none(self):
        """Test an empty nested object becomes a single None column."""
        assert flatten_json({"sky": {}}) == {"sky": None}

    def test_flatten_custom_separator(self):
        """Test custom separator."""
        assert flatten_json({"a": {"b": 1}}, separator="_") == {"a_b": 1}

    def test_flatten_max_depth(self):
        """Test max depth limit."""
        nested = {"a": {"b": {"c": {"d": 1}}}}
        result = flatten_json(nested, max_depth=2)

        assert "a.b.c" in result
        assert isinstance(result["a.b.c"], dict)


class TestTable:
    """Tests for the table container."""

    def test_from_records_unions_columns_in_first_seen_order(self):
        """Test columns are the union of record keys, missing values None."""
        table = Table.from_records([{"a": 1, "b": 2}, {"a": 3, "c": 4}])

        assert table.columns == ["a", "b", "c"]
        assert table.rows[1] == {"a": 3, "b": None, "c": 4}

    def test_with_leading_columns(self):
        """Test constant columns are prepended."""
        table = Table.from_records([{"date": "2024-06-15"}])
        tagged = table.with_leading_columns({"field_id": "field123"})

        assert tagged.columns == ["field_id", "date"]
        assert tagged[0]["field_id"] == "field123"

    def test_with_leading_columns_on_empty_table(self):
        """Test prepending keeps an empty table empty."""
        tagged = Table().with_leading_columns({"latitude": 1.0, "longitude": 2.0})

        assert len(tagged) == 0
        assert tagged.columns == ["latitude", "longitude"]

    def test_drop_columns_ignores_unknown(self):
        """Test dropping columns that are not present is harmless."""
        table = Table.from_records([{"a": 1, "b": 2}])

        assert table.drop_columns(["b", "zzz"]).columns == ["a"]

    def test_concat(self):
        """Test vertical concatenation."""
        first = Table.from_records([{"a": 1}])
        second = Table.from_records([{"a": 2, "b": 3}])
        result = Table.concat([first, second])

        assert len(result) == 2
        assert result.column("a") == [1, 2]
        assert result.column("b") == [None, 3]

    def test_column_unknown_raises(self):
        """Test asking for a missing column raises KeyError."""
        with pytest.raises(KeyError):
            Table.from_records([{"a": 1}]).column("b")

    def test_incomplete_rows(self):
        """Test rows with None are reported unless the column is ignored."""
        table = Table.from_records([{"a": 1, "b": None}, {"a": 2, "b": 3}])

        assert table.incomplete_rows() == [0]
        assert table.incomplete_rows(ignore=["b"]) == []

    def test_to_arrow(self):
        """Test conversion to pyarrow keeps rows and column order."""
        table = Table.from_records([{"date": "2024-06-15", "gdd": 12.1}])
        arrow = table.to_arrow()

        assert arrow.num_rows == 1
        assert arrow.column_names == ["date", "gdd"]


class TestMetadataColumns:
    """Tests for unit and link column detection."""

    @pytest.mark.parametrize(
        "name",
        ["units", "temperatures.units", "_links.self.href", "location._links.self"],
    )
    def test_metadata(self, name):
        """Test unit and link columns are recognized."""
        assert is_metadata_column(name)

    @pytest.mark.parametrize("name", ["temperatures.max", "unitsSold", "links"])
    def test_not_metadata(self, name):
        """Test measurement columns are kept."""
        assert not is_metadata_column(name)


class TestNormalizeResponse:
    """Tests for response normalization."""

    def test_one_row_per_record_without_metadata(self):
        """Test N records give N rows and no unit or link columns."""
        document = observations_document(date(2024, 6, 1), 5)
        table = normalize_response(document, ResourceFamily.WEATHER_OBSERVATIONS)

        assert len(table) == 5
        assert not any(c.endswith("units") for c in table.columns)
        assert not any("_links" in c for c in table.columns)
        assert table.column("date")[0] == "2024-06-01"
        assert "temperatures.max" in table.columns

    def test_zero_records(self):
        """Test an empty collection gives an empty table, not an error."""
        table = normalize_response({"observations": []}, ResourceFamily.WEATHER_OBSERVATIONS)

        assert len(table) == 0
        assert table.columns == []

    def test_idempotent(self):
        """Test normalizing the same document twice gives equal tables."""
        document = observations_document(date(2024, 6, 1), 3)

        first = normalize_response(document, ResourceFamily.WEATHER_OBSERVATIONS)
        second = normalize_response(document, ResourceFamily.WEATHER_OBSERVATIONS)

        assert first == second

    def test_single_record_document(self):
        """Test a document that is itself one record is wrapped."""
        document = observation_record(date(2024, 6, 1))
        table = normalize_response(document, ResourceFamily.WEATHER_OBSERVATIONS)

        assert len(table) == 1
        assert table[0]["date"] == "2024-06-01"

    def test_forecast_blocks_inherit_date(self):
        """Test forecast blocks become rows carrying their day's date."""
        document = forecasts_document(date(2024, 6, 15), 3)
        table = normalize_response(document, ResourceFamily.WEATHER_FORECASTS)

        assert len(table) == 3
        assert table.columns[0] == "date"
        assert table.column("date") == ["2024-06-15", "2024-06-16", "2024-06-17"]
        assert "soilTemperatures" not in table.columns
        assert "soilMoisture" not in table.columns
        assert "temperatures.max" in table.columns

    def test_soils_one_row_per_depth(self):
        """Test soil lists are merged by depth and other variables dropped."""
        table = normalize_response(soils_document(date(2024, 6, 15), 2), ResourceFamily.SOILS)

        assert len(table) == 4
        assert table.columns[:4] == ["date", "startTime", "endTime", "depth"]
        assert table.column("depth") == ["0-0.1 m", "0.1-0.4 m"] * 2
        assert table.column("soilMoisture.average") == [0.31, 0.33, 0.31, 0.33]
        assert "temperatures.max" not in table.columns
        assert "location.latitude" not in table.columns

    def test_soils_depths_without_partner(self):
        """Test a depth reported for only one variable still gets a row."""
        document = soils_day(date(2024, 6, 15), depths=("0-0.1 m",))
        document["forecast"][0]["soilTemperatures"].append({"depth": "1-2 m", "average": 15.0})

        table = normalize_response({"forecasts": [document]}, ResourceFamily.SOILS)

        assert table.column("depth") == ["0-0.1 m", "1-2 m"]
        assert table.column("soilMoisture.average") == [0.31, None]

    def test_soils_malformed_depth_list(self):
        document = soils_day(date(2024, 6, 15))
        document["forecast"][0]["soilMoisture"] = {"depth": "0-0.1 m"}

        with pytest.raises(ParseError):
            normalize_response({"forecasts": [document]}, ResourceFamily.SOILS)

    def test_norms(self):
        """Test norms are keyed by month-day."""
        table = normalize_response(norms_document(["03-01", "03-02"]), ResourceFamily.WEATHER_NORMS)

        assert table.column("day") == ["03-01", "03-02"]
        assert "meanTemp.average" in table.columns

    def test_current_conditions_whole_document(self):
        """Test current conditions are a single record."""
        document = {
            "dateTime": "2024-06-15T10:00:00+00:00",
            "temperatures": {"value": 24.0, "units": "C"},
            "_links": {"self": {"href": "/v2/weather/fields/field123/currentconditions"}},
        }
        table = normalize_response(document, ResourceFamily.CURRENT_CONDITIONS)

        assert table.columns == ["dateTime", "temperatures.value"]

    def test_explicit_schema(self):
        """Test a custom schema can be given instead of a family."""
        schema = RecordSchema("items", "id")
        table = normalize_response({"items": [{"id": 1}, {"id": 2}]}, schema)

        assert table.column("id") == [1, 2]

    @pytest.mark.parametrize(
        "document",
        [
            [],
            "not json",
            {"observations": "oops"},
            {"observations": [1, 2]},
            {"unexpected": True},
        ],
    )
    def test_non_conforming_document_raises(self, document):
        """Test documents of the wrong shape raise ParseError."""
        with pytest.raises(ParseError):
            normalize_response(document, ResourceFamily.WEATHER_OBSERVATIONS)

    def test_null_collection_is_empty(self):
        """Test a null collection is treated as no records."""
        schema = RecordSchema("fields", "id")

        assert locate_records({"fields": None}, schema) == []


class TestDataChecks:
    """Tests for completeness warnings."""

    def test_daily_complete(self, caplog):
        """Test a complete table yields no issues."""
        table = Table.from_records([{"date": "2024-06-01"}, {"date": "2024-06-02"}])

        with caplog.at_level(logging.WARNING):
            issues = check_daily_return(table, "2024-06-01", "2024-06-02")

        assert issues == []
        assert caplog.records == []

    def test_daily_wrong_count_warns(self, caplog):
        """Test a missing day is logged, not raised."""
        table = Table.from_records([{"date": "2024-06-01"}])

        with caplog.at_level(logging.WARNING):
            issues = check_daily_return(table, "2024-06-01", "2024-06-03")

        assert len(issues) == 1
        assert "expected 3" in issues[0]
        assert "Incorrect number of rows" in caplog.text

    def test_daily_incomplete_rows_warns(self):
        """Test rows with missing values are reported by row number."""
        table = Table.from_records([{"date": "2024-06-01", "gdd": None}])

        issues = check_daily_return(table, "2024-06-01")

        assert issues == ["Missing data from rows 1; check data before continuing"]

    def test_forecast_hourly_ignores_empty_columns(self):
        """Test humidity and wind extremes are ignored for hourly blocks."""
        rows = [{"date": "2024-06-15", "wind.max": None}] * 24
        table = Table.from_records(rows)

        assert check_forecast_return(table, "2024-06-15", block_size=1) == []
        assert len(check_forecast_return(table, "2024-06-15", block_size=24)) == 2

    def test_forecast_without_dates_skips_count(self):
        """Test no row count is expected when no dates were requested."""
        table = Table.from_records([{"date": "2024-06-15"}] * 8)

        assert check_forecast_return(table, None, block_size=24) == []

    def test_expected_norm_days_feb29(self):
        """Test the leap day is counted unless excluded."""
        assert expected_norm_days("02-01", "03-01", 2008, 2015) == 30
        assert expected_norm_days("02-01", "03-01", 2008, 2015, include_feb29=False) == 29
        assert expected_norm_days("02-01", "03-01", 2009, 2011) == 29

    def test_expected_norm_days_wraps_year(self):
        """Test a range crossing New Year is counted forward."""
        assert expected_norm_days("12-31", "01-01", 2010, 2014) == 2

    def test_norms_check(self):
        """Test a norms table with one row per month-day passes."""
        table = Table.from_records([{"day": "03-01"}, {"day": "03-02"}])

        assert check_norms_return(table, "03-01", "03-02", 2008, 2015, "2009,2013") == []

    def test_soils_counts_blocks_not_rows(self, caplog):
        """Test several depths per block do not inflate the count."""
        rows = [
            {"date": "2024-06-15", "startTime": "00:00", "depth": depth, "soilMoisture.average": 0.3}
            for depth in ("0-0.1 m", "0.1-0.4 m")
        ]
        table = Table.from_records(rows)

        assert check_soils_return(table, "2024-06-15", block_size=24) == []

        with caplog.at_level(logging.WARNING):
            issues = check_soils_return(table, "2024-06-15", "2024-06-16", block_size=24)

        assert issues[0].startswith("Incorrect number of forecast blocks returned: expected 2, got 1")
        assert "forecast blocks" in caplog.text

    def test_soils_hourly_ignores_empty_extremes(self):
        rows = [
            {"date": "2024-06-15", "startTime": f"{hour:02d}:00", "soilMoisture.max": None}
            for hour in range(24)
        ]
        table = Table.from_records(rows)

        assert check_soils_return(table, "2024-06-15", block_size=1) == []
