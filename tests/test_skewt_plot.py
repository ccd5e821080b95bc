from datetime import datetime, timezone

import pytest

import pyskewt.atmos_math as am
import pyskewt.atmos_thermo as at
import pyskewt.raob_funcs as rf
import pyskewt.skewt_plot as sp
import pyskewt.sounding as ps

TIME = datetime(2023, 2, 15, 22, tzinfo=timezone.utc)
TOLERANCE = 1e-9


def contained(path, tolerance=TOLERANCE):
    return all((-tolerance <= x <= 1.0+tolerance) and (-tolerance <= y <= 1.0+tolerance) for x, y in path.points)


def assert_point(actual, expected):
    assert actual[0] == pytest.approx(expected[0], abs=1e-9)
    assert actual[1] == pytest.approx(expected[1], abs=1e-9)


def test_coordinates_of_corners():
    plot = sp.SkewtPlot()
    assert plot.y_for_pressure(1050.0) == pytest.approx(1.0)
    assert plot.y_for_pressure(100.0) == pytest.approx(0.0)
    assert_point(plot.point(1050.0, -40.0), (0.0, 1.0))
    assert_point(plot.point(1050.0, 50.0), (1.0, 1.0))
    assert_point(plot.point(100.0, -40.0), (1.0, 0.0))


@pytest.mark.parametrize("x, y", [(0.0, 0.0), (0.3, 0.7), (0.9, 0.2), (1.0, 1.0)])
def test_pressure_and_temperature_inverts_point(x, y):
    plot = sp.SkewtPlot(skew=0.75)
    pres, temp = plot.pressure_and_temperature(x, y)
    assert_point(plot.point(pres, temp), (x, y))


def test_altitude_range():
    plot = sp.SkewtPlot()
    low, high = plot.altitude_range
    assert low == pytest.approx(at.standard_altitude(1050.0))
    assert high == pytest.approx(at.standard_altitude(100.0))
    plot.altitude_range = (0.0, 40000.0)
    assert plot.pressure_range[1] == pytest.approx(1013.25)
    assert plot.pressure_range[0] == pytest.approx(at.standard_pressure(40000.0))


def test_isotherm_from_bottom_left():
    plot = sp.SkewtPlot()
    temp = plot.pressure_and_temperature(0.0, 1.0)[1]
    start, end = plot.isotherm(temp)
    assert_point(start, (0.0, 1.0))
    assert_point(end, (1.0, 0.0))


def test_isotherm_from_bottom_middle():
    plot = sp.SkewtPlot()
    temp = plot.pressure_and_temperature(0.5, 1.0)[1]
    start, end = plot.isotherm(temp)
    assert_point(start, (0.5, 1.0))
    assert_point(end, (1.0, 0.5))


def test_isotherm_half_off_left():
    plot = sp.SkewtPlot()
    temp = plot.pressure_and_temperature(0.0, 0.5)[1]
    start, end = plot.isotherm(temp)
    assert_point(start, (0.0, 0.5))
    assert_point(end, (0.5, 0.0))


def test_isotherm_with_other_skews():
    steep = sp.SkewtPlot(skew=0.5)
    temp = steep.pressure_and_temperature(0.0, 1.0)[1]
    assert_point(steep.isotherm(temp)[1], (0.5, 0.0))
    shallow = sp.SkewtPlot(skew=2.0)
    temp = shallow.pressure_and_temperature(0.0, 1.0)[1]
    assert_point(shallow.isotherm(temp)[1], (1.0, 0.5))
    upright = sp.SkewtPlot(skew=0.0)
    temp = upright.pressure_and_temperature(0.25, 1.0)[1]
    assert upright.isotherm(temp) == ((0.25, 1.0), (0.25, 0.0))


def test_isotherm_outside_square():
    plot = sp.SkewtPlot()
    assert plot.isotherm(100.0) is None
    assert plot.isotherm(-200.0) is None


@pytest.mark.parametrize("skew", [0.0, 0.5, 1.0, 2.0])
def test_isotherm_slopes(skew):
    plot = sp.SkewtPlot(skew=skew)
    for path in plot.isotherm_paths.values():
        points = sorted(path.points, key=lambda pt: pt[1], reverse=True)
        xs = [pt[0] for pt in points]
        assert xs == sorted(xs)


def test_isotherm_count():
    plot = sp.SkewtPlot()
    low, high = plot.surface_temperature_range
    expected = 2*(high-low)/plot.isotherm_spacing
    assert abs(len(plot.isotherm_paths)-expected) <= 2


def test_isobars():
    plot = sp.SkewtPlot()
    isobars = plot.isobar_paths
    assert sorted(isobars.keys()) == [100.0, 200.0, 300.0, 400.0, 500.0, 600.0, 700.0, 800.0, 900.0, 1000.0, 1050.0]
    assert isobars[1050.0].points == [(0.0, 1.0), (1.0, 1.0)]


def test_altitude_isobars_inside_diagram():
    plot = sp.SkewtPlot(pressure_range=(300.0, 1000.0))
    isobars = plot.altitude_isobar_paths
    assert sorted(isobars.keys()) == [5000.0, 10000.0, 20000.0, 30000.0]
    for alt, path in isobars.items():
        assert path.points[0][1] == pytest.approx(plot.y_for_altitude(alt))


def test_families_stay_in_square():
    geometry = sp.compute_geometry()
    for family in ("isobars", "altitude_isobars", "isotherms", "dry_adiabats", "moist_adiabats", "isohumes"):
        assert len(geometry[family]) > 0
        for path in geometry[family].values():
            assert contained(path)


def test_dry_adiabats():
    plot = sp.SkewtPlot()
    adiabats = plot.dry_adiabat_paths
    assert min(adiabats.keys()) == -30.0
    assert max(adiabats.keys()) == 100.0
    assert_point(adiabats[0.0].points[0], plot.point(1050.0, 0.0))


def test_dry_adiabat_follows_dry_lapse():
    plot = sp.SkewtPlot()
    path = plot.dry_adiabat(20.0)
    x, y = path.points[-1]
    pres, temp = plot.pressure_and_temperature(x, y)
    expected = at.dry_parcel_temp(20.0, at.standard_altitude(1050.0), at.standard_altitude(pres))
    assert temp == pytest.approx(expected, abs=1e-6)


def test_moist_adiabats():
    plot = sp.SkewtPlot()
    adiabats = plot.moist_adiabat_paths
    assert min(adiabats.keys()) == -30.0
    assert max(adiabats.keys()) == 40.0
    # A saturated parcel cools more slowly than a dry one
    moist = adiabats[20.0].points
    dry = plot.dry_adiabat(20.0).points
    assert moist[50][0] > dry[50][0]


def test_dry_adiabat_resumes_after_leaving_square():
    # With a narrow range and a strong skew the adiabat bows out past the left edge and comes back
    plot = sp.SkewtPlot(surface_temperature_range=(0.0, 30.0), skew=5.5)
    path = plot.dry_adiabat(3.0)
    assert len(path.strokes) > 1
    assert contained(path)
    assert path.strokes[0][0][0] == pytest.approx(0.1)
    assert path.strokes[-1][-1][1] == pytest.approx(0.0, abs=1e-9)


def next_step(plot, y):
    steps = [1.0]+plot._steps()
    i = steps.index(y)
    if (i+1 == len(steps)):
        return None
    return steps[i+1]


def test_moist_adiabats_stop_at_the_edge():
    plot = sp.SkewtPlot()
    stopped = 0
    for path in plot.moist_adiabat_paths.values():
        assert len(path.strokes) == 1
        x, y = path.points[-1]
        following = next_step(plot, y)
        if (following is None):
            continue
        pres, temp = plot.pressure_and_temperature(x, y)
        temp = at.saturated_parcel_temp(temp, at.standard_altitude(pres), at.standard_altitude(plot.pressure_at(following)),
            plot.pressure_at(following))
        assert not am.in_unit_square(*plot.at_height(following, float(temp)))
        stopped += 1
    assert stopped > 0


def test_isohumes_stop_at_the_edge():
    plot = sp.SkewtPlot()
    stopped = 0
    for mixr, path in plot.isohume_paths.items():
        assert len(path.strokes) == 1
        x, y = path.points[-1]
        following = next_step(plot, y)
        if (following is None):
            continue
        temp = float(at.temp_from_mixing_ratio(mixr, plot.pressure_at(following)))-at.KELVIN_OFFSET
        assert not am.in_unit_square(*plot.at_height(following, temp))
        stopped += 1
    assert stopped > 0


def test_isohumes():
    plot = sp.SkewtPlot()
    isohumes = plot.isohume_paths
    assert set(isohumes.keys()) <= set(sp.DEFAULT_ISOHUMES)
    assert 10.0 in isohumes
    start = isohumes[10.0].points[0]
    assert start[1] == 1.0
    assert plot.isohume(0.0) is None


def test_invalid_display_gives_empty_families():
    for display in ({"pressure_range":(1050.0, 100.0)}, {"pressure_range":(0.0, 1000.0)},
            {"surface_temperature_range":(50.0, -40.0)}, {"skew":float("nan")},
            {"pressure_range":None}, {"pressure_range":(100.0,)}, {"surface_temperature_range":None},
            {"surface_temperature_range":("cold", "hot")}, {"skew":None}):
        geometry = sp.compute_geometry(**display)
        for family in ("isobars", "altitude_isobars", "isotherms", "dry_adiabats", "moist_adiabats", "isohumes"):
            assert geometry[family] == {}
        assert geometry["temperature"] is None


def test_missing_spacings_give_empty_families():
    geometry = sp.compute_geometry(isotherm_spacing=None, adiabat_spacing="10", isobar_spacing=None)
    assert geometry["isotherms"] == {}
    assert geometry["dry_adiabats"] == {}
    assert geometry["moist_adiabats"] == {}
    assert geometry["isobars"] == {}
    assert len(geometry["isohumes"]) > 0


def test_non_numeric_isopleth_values_are_skipped():
    plot = sp.SkewtPlot(isohumes=(None, 5.0, "ten"), altitude_isobars=(None, 10000.0))
    assert list(plot.isohume_paths.keys()) == [5.0]
    assert list(plot.altitude_isobar_paths.keys()) == [10000.0]
    plot = sp.SkewtPlot(isohumes=None, altitude_isobars=None)
    assert plot.isohume_paths == {}
    assert plot.altitude_isobar_paths == {}


def test_single_curves_with_bad_input():
    plot = sp.SkewtPlot(pressure_range=None)
    assert plot.isotherm(0.0) is None
    assert plot.dry_adiabat(0.0) is None
    assert plot.moist_adiabat(0.0) is None
    assert plot.isohume(5.0) is None
    assert plot.altitude_range is None
    plot = sp.SkewtPlot()
    assert plot.isotherm(None) is None
    assert plot.isohume(None) is None
    plot.altitude_range = None
    assert not plot.is_valid()


def test_zero_spacing_gives_empty_family():
    plot = sp.SkewtPlot(isotherm_spacing=0.0, isobar_spacing=-10.0)
    assert plot.isotherm_paths == {}
    assert plot.isobar_paths == {}


def test_traces_from_fixture(raob_text):
    plot = sp.SkewtPlot(rf.read_raob(raob_text))
    for path in (plot.temperature_path, plot.dew_point_path):
        assert path is not None
        xmin, ymin, xmax, ymax = path.bounding_box()
        assert xmax > xmin
        assert ymax > ymin
        assert contained(path)


def test_trace_clips_at_edge():
    profile = ps.Profile(TIME, [ps.Point(1000.0, temperature=20.0), ps.Point(50.0, temperature=-100.0)])
    plot = sp.SkewtPlot(profile)
    path = plot.temperature_path
    assert len(path.strokes) == 1
    start, end = path.strokes[0]
    assert_point(start, plot.point(1000.0, 20.0))
    assert end[1] == 0.0
    assert contained(path)


def test_trace_skips_segments_outside():
    # The middle level is far off to the right, the trace breaks into two strokes
    points = [ps.Point(1000.0, temperature=10.0), ps.Point(950.0, temperature=9.0),
        ps.Point(900.0, temperature=95.0), ps.Point(850.0, temperature=96.0),
        ps.Point(800.0, temperature=0.0), ps.Point(750.0, temperature=-2.0)]
    plot = sp.SkewtPlot(ps.Profile(TIME, points))
    path = plot.temperature_path
    assert len(path.strokes) == 2
    assert contained(path)
    assert path.strokes[0][-1][0] == 1.0
    assert path.strokes[1][0][0] == 1.0


def test_trace_does_not_draw_across_square():
    # Both levels lie outside, one far left and one far right
    points = [ps.Point(700.0, temperature=-150.0), ps.Point(600.0, temperature=99.0)]
    plot = sp.SkewtPlot(ps.Profile(TIME, points))
    assert plot.temperature_path.is_empty
    points.append(ps.Point(500.0, temperature=-20.0))
    points.append(ps.Point(400.0, temperature=-30.0))
    path = sp.SkewtPlot(ps.Profile(TIME, points)).temperature_path
    assert len(path.strokes) == 1
    assert path.strokes[0][0][0] == 1.0


def test_trace_without_data():
    profile = ps.Profile(TIME, [ps.Point(1000.0, temperature=20.0)])
    plot = sp.SkewtPlot(profile)
    assert plot.dew_point_path is None
    assert sp.SkewtPlot().temperature_path is None


def test_cursor_lookups(raob_text):
    plot = sp.SkewtPlot(rf.read_raob(raob_text))
    temp, dewp = plot.closest_temperature_and_dew_point(plot.y_for_pressure(1000.0))
    assert temp.pressure == 1000.0
    assert dewp.pressure == 1000.0
    values = plot.temperature_and_dew_point(plot.y_for_pressure(992.5))
    assert values[0] == pytest.approx(14.5)
    assert values[1] == pytest.approx(9.5)
    assert sp.SkewtPlot().temperature_and_dew_point(0.5) is None


def test_path():
    path = sp.Path()
    assert path.is_empty
    assert path.bounding_box() is None
    path.line_to(0.1, 0.2)
    path.line_to(0.3, 0.4)
    path.move_to(0.5, 0.6)
    assert len(path) == 2
    assert path.current_point == (0.5, 0.6)
    assert path.bounding_box() == (0.1, 0.2, 0.5, 0.6)
