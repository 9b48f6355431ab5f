import math

import pytest

from mamsim.antenna import (
    DipoleAntenna,
    DipoleAntennaGain,
    PrintLevel,
    db_to_fraction,
    parse_coord,
)


def test_db_to_fraction_zero_is_unity():
    assert db_to_fraction(0) == pytest.approx(1.0)


def test_db_to_fraction_ten_db_is_factor_ten():
    assert db_to_fraction(10) == pytest.approx(10)


def test_db_to_fraction_is_multiplicative():
    assert db_to_fraction(3 + 4) == pytest.approx(db_to_fraction(3) * db_to_fraction(4))


def test_parse_axis_names():
    assert parse_coord("x") == (1.0, 0.0, 0.0)
    assert parse_coord("z") == (0.0, 0.0, 1.0)


def test_parse_numeric_triplet():
    assert parse_coord("(1.5, -2, 3)") == (1.5, -2.0, 3.0)
    assert parse_coord("0,1,0") == parse_coord("y")


@pytest.mark.parametrize("text", ["w", "1,2", "a,b,c", ""])
def test_parse_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_coord(text)


def test_half_wave_peak_gain_is_max_gain():
    gain = DipoleAntennaGain("z", 0.5, 1.0, 4.0, 0.1)
    assert gain.compute_gain((1.0, 0.0, 0.0)) == pytest.approx(4.0)


def test_gain_is_symmetric_about_broadside():
    gain = DipoleAntennaGain("z", 0.5, 1.0, 2.0, 0.1)
    theta = math.radians(35)
    up = (math.sin(theta), 0.0, math.cos(theta))
    down = (math.sin(theta), 0.0, -math.cos(theta))
    assert gain.compute_gain(up) == pytest.approx(gain.compute_gain(down))


def test_gain_falls_off_towards_the_wire_axis():
    gain = DipoleAntennaGain("z", 0.5, 1.0, 1.0, 0.1)
    values = []
    for degrees in (90, 60, 30, 10):
        theta = math.radians(degrees)
        values.append(gain.compute_gain((math.sin(theta), 0.0, math.cos(theta))))
    assert values == sorted(values, reverse=True)
    assert values[-1] < values[0]


def test_gain_along_wire_axis_is_nan():
    gain = DipoleAntennaGain("z", 0.5, 1.0, 1.0, 0.1)
    result = gain.compute_gain((0.0, 0.0, 1.0))
    assert repr(float(result)) == "nan"


def test_antenna_converts_decibels():
    antenna = DipoleAntenna(10, 0, "z", 0.5, 1.0)
    assert antenna.gain.max_gain == pytest.approx(db_to_fraction(10))
    assert antenna.gain.min_gain == pytest.approx(1.0)
    assert antenna.gain.wire_axis == parse_coord("z")


def test_describe_detail_includes_length():
    antenna = DipoleAntenna(0, 0, "z", 0.25, 2)
    text = antenna.describe(PrintLevel.DETAIL)
    assert text.startswith("DipoleAntenna")
    assert "length = 0.25 m" in text
    assert "lambda = 2 m" in text


def test_describe_info_omits_length_but_keeps_gains():
    antenna = DipoleAntenna(0, 0, "z", 0.25, 2)
    text = antenna.describe(PrintLevel.INFO)
    assert "length" not in text
    assert "maxGain = 1" in text
    assert "minGain = 1" in text