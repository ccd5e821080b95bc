import os

import pytest

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")


def read_data(name, mode="r"):
    encoding = None if ("b" in mode) else "utf-8"
    with open(os.path.join(DATA_DIR, name), mode, encoding=encoding) as fn:
        return fn.read()


@pytest.fixture
def raob_text():
    return read_data("san-op40.txt")


@pytest.fixture
def wmo_text():
    return read_data("wmo-bulletin.txt")


@pytest.fixture
def openmeteo_text():
    return read_data("open-meteo.json")


@pytest.fixture
def uwy_text():
    return read_data("uwy-sounding.csv")
