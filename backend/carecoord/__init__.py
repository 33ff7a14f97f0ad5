"""CareCoord: care coordination between doctors, village health volunteers and patients."""
