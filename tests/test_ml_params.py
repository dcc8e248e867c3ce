"""Tests for MLParams and its selective serialization."""

import dataclasses

import pytest

from spark_sql_perf import MLParams


class TestToMap:

    def test_empty_has_only_random_seed(self):
        assert MLParams.empty.to_map() == {"randomSeed": "42"}

    def test_set_params_are_included(self):
        params = MLParams(rank=10, maxIter=20)
        assert params.to_map() == {"randomSeed": "42", "rank": "10", "maxIter": "20"}

    def test_unset_random_seed_is_dropped(self):
        assert MLParams(randomSeed=None).to_map() == {}

    def test_values_use_default_string_form(self):
        params = MLParams(
            regParam=0.01,
            elasticNetParam=1.0,
            family="binomial",
            numExamples=10_000_000_000,
        )
        m = params.to_map()
        assert m["regParam"] == "0.01"
        assert m["elasticNetParam"] == "1.0"
        assert m["family"] == "binomial"
        assert m["numExamples"] == "10000000000"

    def test_int_given_for_double_param_renders_as_double(self):
        m = MLParams(regParam=1, tol=0, smoothing=2.5, maxIter=3).to_map()
        assert m["regParam"] == "1.0"
        assert m["tol"] == "0.0"
        assert m["smoothing"] == "2.5"
        assert m["maxIter"] == "3"

    def test_copy_coerces_double_params(self):
        assert str(MLParams.empty.copy(elasticNetParam=1).elasticNetParam) == "1.0"

    def test_keys_match_field_names(self):
        names = {f.name for f in dataclasses.fields(MLParams)}
        every = MLParams(**{name: 1 for name in names})
        assert set(every.to_map()) == names

    def test_zero_and_empty_string_count_as_set(self):
        m = MLParams(depth=0, optimizer="").to_map()
        assert m["depth"] == "0"
        assert m["optimizer"] == ""


class TestCopy:

    def test_copy_overrides_and_keeps_original(self):
        base = MLParams(numPartitions=4)
        changed = base.copy(numPartitions=8, tol=1e-4)
        assert changed.numPartitions == 8
        assert changed.tol == 1e-4
        assert changed.randomSeed == 42
        assert base.numPartitions == 4
        assert base.tol is None

    def test_copy_without_overrides_is_equal(self):
        base = MLParams(k=3, link="logit")
        assert base.copy() == base

    def test_unknown_param_rejected(self):
        with pytest.raises(TypeError):
            MLParams.empty.copy(notAParam=1)

    def test_params_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            MLParams.empty.rank = 5
