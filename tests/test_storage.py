"""Tests for prototype and model bank files."""

import numpy as np
import pytest

from gesture_hmm.hmm import HMM, ModelBank, blr_init
from gesture_hmm.sequence import Point, PointSequence
from gesture_hmm.storage import (
    ModelFileError,
    read_gesture_proto,
    read_models,
    write_gesture_proto,
    write_models,
)

LEGACY_PROTO = """%YAML:1.0
N: 4
seq: !!opencv-sequence
   rows: 3
   data: [ 10, 20, 30, 40, 50, 60 ]
"""

LEGACY_MODELS = """%YAML:1.0
---
total: 1
hmm-00:
   N: 2
   A: !!opencv-matrix
      rows: 2
      cols: 2
      dt: d
      data: [ 6.0e-01, 4.0e-01, 0., 1. ]
   b: !!opencv-matrix
      rows: 2
      cols: 2
      dt: d
      data: [ 2.5e-01, 7.5e-01, 1., 0. ]
   pi: !!opencv-matrix
      rows: 1
      cols: 2
      dt: d
      data: [ 1., 0. ]
"""


def trained_looking_model():
    """A model with values that do not have short decimal representations."""
    rng = np.random.default_rng(11)
    model = blr_init(4, 8)
    b = rng.random((4, 8))
    model.b = b / b.sum(axis=1, keepdims=True)
    model.A[:-1, :-1] *= 1 / 3
    model.A[:-1] /= model.A[:-1].sum(axis=1, keepdims=True)
    return model


def write_text(path, text):
    path.write_text(text)
    return path


class TestPrototypes:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "swipe.yml"
        seq = PointSequence([(1, 2), (3, 4), (5, 6)])
        write_gesture_proto(path, seq, 5)

        proto = read_gesture_proto(path)
        assert proto.N == 5
        assert proto.seq == seq
        assert proto.name == "swipe"

    def test_accepts_plain_pairs(self, tmp_path):
        path = tmp_path / "p.yml"
        write_gesture_proto(path, [(0, 0), (9, 9)], 2)
        assert read_gesture_proto(path).seq[-1] == Point(9, 9)

    def test_N_defaults_to_one(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "seq:\n  - [1, 2]\n  - [3, 4]\n")
        assert read_gesture_proto(path).N == 1

    def test_missing_seq(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "N: 3\n")
        with pytest.raises(ModelFileError, match="seq"):
            read_gesture_proto(path)

    def test_empty_seq(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "N: 3\nseq: []\n")
        assert len(read_gesture_proto(path).seq) == 0

    def test_malformed_seq(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "N: 3\nseq:\n  - [1, 2, 3]\n")
        with pytest.raises(ModelFileError):
            read_gesture_proto(path)

    def test_invalid_N(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "N: 0\nseq: [[1, 2]]\n")
        with pytest.raises(ModelFileError):
            read_gesture_proto(path)

    def test_legacy_layout(self, tmp_path):
        path = write_text(tmp_path / "p.yml", LEGACY_PROTO)
        proto = read_gesture_proto(path)
        assert proto.N == 4
        assert list(proto.seq) == [Point(10, 20), Point(30, 40), Point(50, 60)]

    def test_legacy_odd_coordinates(self, tmp_path):
        path = write_text(tmp_path / "p.yml", LEGACY_PROTO.replace(", 60 ]", " ]"))
        with pytest.raises(ModelFileError, match="odd"):
            read_gesture_proto(path)

    def test_not_a_mapping(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "- 1\n- 2\n")
        with pytest.raises(ModelFileError):
            read_gesture_proto(path)

    def test_non_integer_N(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "N: many\nseq: [[1, 2]]\n")
        with pytest.raises(ModelFileError, match="integer"):
            read_gesture_proto(path)

    def test_model_file_error_is_value_error(self, tmp_path):
        path = write_text(tmp_path / "p.yml", "N: 3\n")
        with pytest.raises(ValueError):
            read_gesture_proto(path)


class TestModelFiles:
    def test_round_trip_is_exact(self, tmp_path):
        models = [trained_looking_model(), blr_init(2, 8), blr_init(1, 8)]
        path = tmp_path / "models.yml"
        write_models(path, models)

        loaded = read_models(path)
        assert len(loaded) == 3
        for original, restored in zip(models, loaded):
            assert restored.N == original.N
            np.testing.assert_array_equal(restored.A, original.A)
            np.testing.assert_array_equal(restored.b, original.b)
            np.testing.assert_array_equal(restored.pi, original.pi)

    def test_empty_bank(self, tmp_path):
        path = tmp_path / "models.yml"
        write_models(path, [])
        assert read_models(path) == []

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "out" / "models.yml"
        write_models(path, [blr_init(2, 8)])
        assert path.exists()

    def test_legacy_layout(self, tmp_path):
        path = write_text(tmp_path / "models.yml", LEGACY_MODELS)
        (model,) = read_models(path)
        assert isinstance(model, HMM)
        np.testing.assert_allclose(model.A, [[0.6, 0.4], [0.0, 1.0]])
        np.testing.assert_allclose(model.b, [[0.25, 0.75], [1.0, 0.0]])
        np.testing.assert_array_equal(model.pi, [1.0, 0.0])

    def test_total_limits_models_read(self, tmp_path):
        path = tmp_path / "models.yml"
        write_models(path, [blr_init(2, 8), blr_init(3, 8)])
        text = path.read_text().replace("total: 2", "total: 1")
        path.write_text(text)
        assert len(read_models(path)) == 1

    def test_missing_total(self, tmp_path):
        path = write_text(tmp_path / "m.yml", "models: []\n")
        with pytest.raises(ModelFileError, match="total"):
            read_models(path)

    def test_total_exceeds_models(self, tmp_path):
        path = tmp_path / "models.yml"
        write_models(path, [blr_init(2, 8)])
        path.write_text(path.read_text().replace("total: 1", "total: 3"))
        with pytest.raises(ModelFileError):
            read_models(path)

    def test_legacy_missing_record(self, tmp_path):
        path = write_text(tmp_path / "m.yml", LEGACY_MODELS.replace("total: 1", "total: 2"))
        with pytest.raises(ModelFileError, match="hmm-01"):
            read_models(path)

    def test_shape_mismatch(self, tmp_path):
        path = write_text(tmp_path / "m.yml", LEGACY_MODELS.replace("N: 2", "N: 3"))
        with pytest.raises(ModelFileError):
            read_models(path)

    def test_data_length_mismatch(self, tmp_path):
        path = write_text(
            tmp_path / "m.yml", LEGACY_MODELS.replace("[ 1., 0. ]", "[ 1. ]")
        )
        with pytest.raises(ModelFileError, match="values"):
            read_models(path)

    def test_missing_matrix(self, tmp_path):
        text = "total: 1\nmodels:\n  - N: 1\n    A: {rows: 1, cols: 1, dt: d, data: [1.0]}\n"
        path = write_text(tmp_path / "m.yml", text)
        with pytest.raises(ModelFileError, match="'b'"):
            read_models(path)

    def test_unsupported_matrix_type(self, tmp_path):
        path = write_text(tmp_path / "m.yml", LEGACY_MODELS.replace("dt: d", "dt: u", 1))
        with pytest.raises(ModelFileError, match="unsupported"):
            read_models(path)

    def test_invalid_yaml(self, tmp_path):
        path = write_text(tmp_path / "m.yml", "total: [1, 2\n")
        with pytest.raises(ModelFileError, match="invalid YAML"):
            read_models(path)

    def test_non_integer_state_count(self, tmp_path):
        path = write_text(tmp_path / "m.yml", LEGACY_MODELS.replace("N: 2", "N: four"))
        with pytest.raises(ModelFileError, match="integer"):
            read_models(path)

    def test_non_integer_total(self, tmp_path):
        path = write_text(tmp_path / "m.yml", LEGACY_MODELS.replace("total: 1", "total: one"))
        with pytest.raises(ModelFileError, match="total"):
            read_models(path)

    def test_non_integer_rows(self, tmp_path):
        path = write_text(tmp_path / "m.yml", LEGACY_MODELS.replace("rows: 2", "rows: two", 1))
        with pytest.raises(ModelFileError, match="rows"):
            read_models(path)

    def test_non_numeric_matrix_data(self, tmp_path):
        path = write_text(
            tmp_path / "m.yml", LEGACY_MODELS.replace("[ 1., 0. ]", "[ x, 0. ]")
        )
        with pytest.raises(ModelFileError, match="non-numeric"):
            read_models(path)

    def test_models_must_be_a_list(self, tmp_path):
        path = write_text(tmp_path / "m.yml", "total: 1\nmodels: {a: 1}\n")
        with pytest.raises(ModelFileError, match="list"):
            read_models(path)

    def test_expected_alphabet(self, tmp_path):
        path = tmp_path / "models.yml"
        write_models(path, [blr_init(3, 4)])
        assert read_models(path, num_symbols=4)[0].M == 4
        with pytest.raises(ModelFileError, match="symbol columns"):
            read_models(path, num_symbols=8)

    def test_bank_helpers(self, tmp_path):
        path = tmp_path / "bank.yml"
        ModelBank([trained_looking_model()]).save(path)
        bank = ModelBank.load(path)
        np.testing.assert_array_equal(bank[0].b, trained_looking_model().b)
