from datetime import datetime, timezone

import pytest

import pyskewt.atmos_thermo as at
import pyskewt.sounding as ps
import pyskewt.wmo_funcs as wf

REFERENCE = datetime(2023, 5, 20, 6, tzinfo=timezone.utc)

TTAA = ("72518  TTAA 69121 72518 99008 18407 35004 00151 18208 36007 92818 15012 03510 85529 11034 04510 "
    "70142 06262 35005 50582 08770 23006 40752 20569 22532 30958 35737 22563 25082 46359 23568 20226 57758 "
    "22572 15407 59159 23552 10660 61360 24518 88176 59758 22574 77181 22576 41218 51515 10164 00008 10194 "
    "03011 02006=")

TTBB = ("72518  TTBB 69120 72518 00008 18407 11980 17005 22951 17010 33897 12805 44850 11034 55831 12050 "
    "66758 09857 77726 07218 88712 07065 99666 04458 11645 02249 22521 07562 33491 08972 44372 24567 55367 "
    "25143 66358 26513 77349 26956 88332 29558 99295 36731 11265 42959 22200 57758 33100 61360 31313 01102 "
    "81106=")


@pytest.mark.parametrize("group, temp, dewp", [
    ("20100", -20.1, None),
    ("30056", 30.0, 24.0),
    ("30050", 30.0, 25.0),
    ("30002", 30.0, 29.8),
    ("18407", 18.4, 17.7),
    ("06262", 6.2, -5.8),
    ("59758", -59.7, -67.7),
])
def test_decode_temperature_group(group, temp, dewp):
    if (dewp is None):
        group = group[:3]+"//"
    decoded = wf.decode_temperature_group(group)
    assert decoded[0] == pytest.approx(temp)
    if (dewp is None):
        assert decoded[1] is None
    else:
        assert decoded[1] == pytest.approx(dewp)


def test_decode_temperature_group_missing():
    assert wf.decode_temperature_group("/////") == (None, None)
    with pytest.raises(ps.UnparseableValueError):
        wf.decode_temperature_group("1A407")


@pytest.mark.parametrize("group, direction, speed", [
    ("35004", 350, 4),
    ("22632", 225, 132),
    ("09112", 90, 112),
    ("36007", 360, 7),
    ("27599", 275, 99),
])
def test_decode_wind_group(group, direction, speed):
    assert wf.decode_wind_group(group) == (direction, speed)


def test_decode_wind_group_missing():
    assert wf.decode_wind_group("/////") == (None, None)
    assert wf.decode_wind_group("350//") == (None, None)


@pytest.mark.parametrize("group, pres, height", [
    ("99008", 1008.0, None),
    ("99985", 985.0, None),
    ("00151", 1000.0, 151.0),
    ("00520", 1000.0, -20.0),
    ("92818", 925.0, 818.0),
    ("85529", 850.0, 1529.0),
    ("70142", 700.0, 3142.0),
    ("70950", 700.0, 2950.0),
    ("50575", 500.0, 5750.0),
    ("30958", 300.0, 9580.0),
    ("30012", 300.0, 10120.0),
    ("25082", 250.0, 10820.0),
    ("10660", 100.0, 16600.0),
])
def test_decode_pressure_group(group, pres, height):
    assert wf.decode_pressure_group(group) == (pres, height)


def test_decode_pressure_group_errors():
    with pytest.raises(ps.UnparseableValueError):
        wf.decode_pressure_group("12345")
    with pytest.raises(ps.UnparseableValueError):
        wf.decode_pressure_group("99///")


def test_decode_pressure_suffix():
    assert wf.decode_pressure_suffix("11980") == 980.0
    assert wf.decode_pressure_suffix("00008") == 1008.0
    assert wf.decode_pressure_suffix("88176") == 176.0


def test_read_ttaa():
    profile = wf.read_wmo(TTAA, reference_time=REFERENCE)[0]
    assert profile.time == datetime(2023, 5, 19, 12, tzinfo=timezone.utc)
    assert profile.metadata["wmo_id"] == 72518
    surface = profile.surface_point
    assert surface.pressure == 1008.0
    assert surface.temperature == pytest.approx(18.4)
    assert surface.dew_point == pytest.approx(17.7)
    assert surface.wind_direction == 350
    assert surface.wind_speed == 4
    level = profile.closest_value(925.0, ps.TEMPERATURE)
    assert level.pressure == 925.0
    assert level.temperature == pytest.approx(15.0)
    assert level.dew_point == pytest.approx(13.8)
    assert (level.wind_direction, level.wind_speed) == (35, 10)
    assert level.height == 818.0


def test_read_ttaa_tropopause_and_max_wind():
    profile = wf.read_wmo(TTAA, reference_time=REFERENCE)[0]
    tropopause = profile.closest_value(176.0, ps.TEMPERATURE)
    assert tropopause.pressure == 176.0
    assert tropopause.temperature == pytest.approx(-59.7)
    max_wind = profile.closest_value(181.0, ps.WIND_SPEED)
    assert max_wind.pressure == 181.0
    assert (max_wind.wind_direction, max_wind.wind_speed) == (225, 76)


def test_read_ttbb():
    profile = wf.read_wmo(TTBB, reference_time=REFERENCE)[0]
    level = profile.closest_value(980.0, ps.TEMPERATURE)
    assert level.pressure == 980.0
    assert level.temperature == pytest.approx(17.0)
    assert level.dew_point == pytest.approx(16.5)
    level = profile.closest_value(951.0, ps.TEMPERATURE)
    assert level.temperature == pytest.approx(17.0)
    assert level.dew_point == pytest.approx(16.0)
    assert profile.surface_point.pressure == 1008.0


def test_parts_merge_into_one_profile():
    profiles = wf.read_wmo(TTAA+"\n"+TTBB, reference_time=REFERENCE)
    assert len(profiles) == 1
    pressures = [p.pressure for p in profiles[0].points]
    assert pressures == sorted(pressures, reverse=True)
    assert len(pressures) == len(set(pressures))
    assert 980.0 in pressures
    assert 925.0 in pressures


def test_read_bulletin_fixture(wmo_text):
    profiles = wf.read_wmo(wmo_text, reference_time=REFERENCE)
    # NIL and malformed messages are dropped
    assert [p.metadata["station_id"] for p in profiles] == ["72518"]
    profile = profiles[0]
    level = profile.closest_value(950.0, ps.WIND_SPEED)
    assert level.pressure == 950.0
    assert (level.wind_direction, level.wind_speed) == (15, 12)


def test_station_filter(wmo_text):
    assert len(wf.read_wmo(wmo_text, station=72518, reference_time=REFERENCE)) == 1
    assert len(wf.read_wmo(wmo_text, station="72518", reference_time=REFERENCE)) == 1
    with pytest.raises(ps.MissingStationError):
        wf.read_wmo(wmo_text, station=72649, reference_time=REFERENCE)


def test_wind_in_meters_per_second():
    message = TTAA.replace("TTAA 69121", "TTAA 19121")
    surface = wf.read_wmo(message, reference_time=REFERENCE)[0].surface_point
    assert surface.wind_speed == pytest.approx(4*at.KNOTS_PER_MS)


def test_message_time_rolls_back_a_month():
    reference = datetime(2023, 5, 10, tzinfo=timezone.utc)
    profile = wf.read_wmo(TTAA, reference_time=reference)[0]
    assert profile.time == datetime(2023, 4, 19, 12, tzinfo=timezone.utc)
    reference = datetime(2023, 1, 3, tzinfo=timezone.utc)
    profile = wf.read_wmo(TTAA, reference_time=reference)[0]
    assert profile.time == datetime(2022, 12, 19, 12, tzinfo=timezone.utc)


def test_message_time_allows_reference_earlier_in_the_day():
    # A reference at 00Z on the sounding day keeps the 12Z message in that month
    reference = datetime(2023, 5, 19, tzinfo=timezone.utc)
    profile = wf.read_wmo(TTAA, reference_time=reference)[0]
    assert profile.time == datetime(2023, 5, 19, 12, tzinfo=timezone.utc)
    profile = wf.read_wmo(TTAA, reference_time=datetime(2023, 5, 18, 6, tzinfo=timezone.utc))[0]
    assert profile.time == datetime(2023, 4, 19, 12, tzinfo=timezone.utc)


def test_winds_limited_by_indicator():
    # Id 7: winds are only reported down to 700 hPa, levels above carry pairs
    message = "TTAA 69127 72518 99008 18407 35004 85529 11034 04510 70142 06262 35005 50582 08770 40752 20569="
    profile = wf.read_wmo(message, reference_time=REFERENCE)[0]
    assert profile.closest_value(700.0, ps.WIND_SPEED).pressure == 700.0
    upper = profile.closest_value(400.0, ps.TEMPERATURE)
    assert upper.pressure == 400.0
    assert upper.temperature == pytest.approx(-20.5)
    assert upper.wind_speed is None


def test_no_decodable_messages():
    with pytest.raises(ps.NoDataError):
        wf.read_wmo("TTAA 69121 72649 NIL=", reference_time=REFERENCE)
    with pytest.raises(ps.NoDataError):
        wf.read_wmo("USUS41 KWBC 191200\nPPBB 69120 72518 90012 35004=", reference_time=REFERENCE)
    with pytest.raises(ps.EmptyInputError):
        wf.read_wmo("", reference_time=REFERENCE)


def test_split_messages():
    messages = wf.split_messages("USUS41 KWBC 191200\n72518 TTAA 69121 72518 99008=\nTTBB 69120 72518 00008 18407=")
    assert [m[0] for m in messages] == ["TTAA", "TTBB"]
    assert messages[0][1] == "69121"
