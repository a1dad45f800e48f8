# tests/conftest.py
from __future__ import annotations

from typing import Any, Dict, List

import pytest

from roprojection.schemas.membrane import Membrane
from roprojection.services.membranes import default_library


@pytest.fixture()
def library() -> List[Membrane]:
    return default_library()


@pytest.fixture()
def feed_water() -> Dict[str, Any]:
    # 기수(Brackish) 원수 예시
    return {
        "temp": 25,
        "ph": 7.6,
        "ca": 60,
        "mg": 20,
        "na": 300,
        "k": 8,
        "sr": 1.0,
        "ba": 0.05,
        "hco3": 180,
        "so4": 150,
        "cl": 450,
        "no3": 10,
        "f": 0.5,
        "po4": 0.2,
        "sio2": 15,
        "b": 0.4,
        "co2": 2.0,
    }


@pytest.fixture()
def single_stage_config() -> Dict[str, Any]:
    return {
        "permeateFlow": 77,
        "flowUnit": "gpm",
        "recovery": 55,
        "stages": [{"membraneModel": "espa2ld", "elementsPerVessel": 6, "vessels": 4}],
    }


@pytest.fixture()
def two_stage_config() -> Dict[str, Any]:
    return {
        "permeateFlow": 40,
        "flowUnit": "m3/h",
        "recovery": 75,
        "stages": [
            {"membraneModel": "cpa3", "elementsPerVessel": 6, "vessels": 6},
            {"membraneModel": "cpa3", "elementsPerVessel": 6, "vessels": 3},
        ],
    }
