"""Internal constants shared across the library."""

from __future__ import annotations

from pyevhealth.models.snapshot import VehicleModel

BASE_URL = "https://fleet-api.prd.na.vn.cloud.tesla.com"
USER_AGENT = "pyevhealth/0.1"

# ------------------------------------------------------------------
# Vehicle reference data
# ------------------------------------------------------------------

#: EPA-rated full range in km, used when the vehicle reports no ideal range.
EPA_RANGE_KM: dict[VehicleModel, float] = {
    VehicleModel.MODEL_3: 358.0,
    VehicleModel.MODEL_S: 405.0,
    VehicleModel.MODEL_X: 351.0,
    VehicleModel.MODEL_Y: 326.0,
}

#: Nominal pack capacity in kWh.
NOMINAL_CAPACITY_KWH: dict[VehicleModel, float] = {
    VehicleModel.MODEL_3: 75.0,
    VehicleModel.MODEL_S: 100.0,
    VehicleModel.MODEL_X: 100.0,
    VehicleModel.MODEL_Y: 75.0,
}

DEFAULT_MODEL = VehicleModel.MODEL_3

#: Average distance per full charge cycle (275 mi).
KM_PER_CYCLE = 443.0

#: Share of the displayed level a healthy pack reports as usable.
EXPECTED_USABLE_RATIO = 0.95

# ------------------------------------------------------------------
# Warranty (8 years / 160,000 km)
# ------------------------------------------------------------------

WARRANTY_KM = 160_000
WARRANTY_GRACE_KM = 180_000

# ------------------------------------------------------------------
# Secondary (charge-history) algorithm
# ------------------------------------------------------------------

DEFAULT_EFFICIENCY_KWH_PER_KM = 0.2
DEFAULT_CAPACITY_KWH = 75.0
MAX_CAPACITY_RECORDS = 100
HIGH_CONFIDENCE_CHARGES = 50
MEDIUM_CONFIDENCE_CHARGES = 20
