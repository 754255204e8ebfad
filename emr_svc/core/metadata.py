"""
Metadata constants shared by the repositories and services.

Identifiers are the uuids KenyaEMR deploys, so rows created here line up
with an existing installation's metadata.
"""

# Patient identifier types
OPENMRS_ID_UUID = "dfacd928-0370-4315-99d7-6ec1c9f7ae76"
OPENMRS_ID_NAME = "OpenMRS ID"
OPENMRS_ID_VALIDATOR = "org.openmrs.module.idgen.validator.LuhnMod30IdentifierValidator"

UNIQUE_PATIENT_NUMBER_UUID = "05ee9cf4-7242-4a17-b4d4-00f707265c8a"
UNIQUE_PATIENT_NUMBER_NAME = "Unique Patient Number"

# Identifier source names
OPENMRS_MEDICAL_RECORD_NUMBER_NAME = "Kenya EMR - OpenMRS Medical Record Number"
HIV_UNIQUE_PATIENT_NUMBER_NAME = "Kenya EMR - OpenMRS HIV Unique Patient Number"

# Global properties
GP_DEFAULT_LOCATION = "kenyaemr.defaultLocation"

# Search parameters
LOCATION_PARAM = "location_uuid"
VISIT_LOCATION_PARAM = "visit_location_uuid"
