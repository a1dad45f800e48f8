# roprojection/data/membranes.py
# Default membrane library (8" brackish / seawater + one 4" low-fouling element).
# Area in ft2 per element, aValue in gfd/psi, rejections in %.

MEMBRANES = [
    {
        "id": "espa2ld",
        "name": "ESPA2-LD",
        "type": "Brackish",
        "area": 400,
        "aValue": 0.18,
        "rejection": 99.7,
        "monoRejection": 96.0,
        "divalentRejection": 99.7,
        "silicaRejection": 98.0,
        "boronRejection": 90.0,
        "alkalinityRejection": 99.5,
        "co2Rejection": 0.0,
    },
    {
        "id": "cpa3",
        "name": "CPA3",
        "type": "Brackish",
        "area": 400,
        "aValue": 0.12,
        "rejection": 99.7,
        "monoRejection": 96.0,
        "divalentRejection": 99.7,
        "silicaRejection": 98.0,
        "boronRejection": 90.0,
        "alkalinityRejection": 99.5,
        "co2Rejection": 0.0,
    },
    {
        "id": "swc5ld",
        "name": "SWC5-LD",
        "type": "Seawater",
        "area": 400,
        "aValue": 0.06,
        "rejection": 99.8,
        "monoRejection": 98.0,
        "divalentRejection": 99.8,
        "silicaRejection": 99.0,
        "boronRejection": 92.0,
        "alkalinityRejection": 99.7,
        "co2Rejection": 0.0,
    },
    {
        "id": "lfc3ld4040",
        "name": "LFC3-LD4040",
        "type": "Low Fouling",
        "area": 80,
        "aValue": 0.12,
        "rejection": 99.7,
        "monoRejection": 92.0,
        "divalentRejection": 99.95,
        "silicaRejection": 99.95,
        "boronRejection": 99.9,
        "alkalinityRejection": 99.985,
        "co2Rejection": 0.0,
        "ionRejectionOverrides": {
            "na": 93.04,
            "cl": 91.07,
            "k": 99.9,
            "no3": 99.99,
            "f": 99.99,
            "hco3": 99.984,
            "co3": 99.99,
            "so4": 99.99,
            "ca": 99.99,
            "mg": 99.99,
            "sr": 99.99,
            "ba": 99.99,
            "sio2": 99.99,
            "po4": 99.99,
            "b": 99.99,
            "co2": 0.0,
        },
    },
]
