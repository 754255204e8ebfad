"""
Tests for IdentifierService: provisioning, minting and validation.
"""
import pytest

from emr_svc.core import metadata
from emr_svc.core.exceptions import (
    AlreadyProvisionedError,
    ConfigError,
    IdentifierSourceNotFoundError,
    IdentifierTypeNotFoundError,
)

BASE30 = "0123456789ACDEFGHJKLMNPRTUVWXY"


class TestProvision:
    """Tests for IdentifierService.provision()."""

    def test_provision_with_explicit_configuration(self, identifier_service):
        source = identifier_service.provision(
            identifier_type=metadata.UNIQUE_PATIENT_NUMBER_NAME,
            name="UPN source",
            base_character_set="0123456789",
            first_identifier_base="00100",
        )

        assert source.identifier_type.uuid == metadata.UNIQUE_PATIENT_NUMBER_UUID
        assert source.first_identifier_base == "00100"
        assert source.description == "Identifier Generator for Unique Patient Number"
        assert identifier_service.mint_next(metadata.UNIQUE_PATIENT_NUMBER_UUID) == "00100"

    def test_validator_supplies_defaults(self, identifier_service):
        source = identifier_service.provision(identifier_type=metadata.OPENMRS_ID_UUID, name="OpenMRS IDs")

        assert source.base_character_set == BASE30
        assert source.first_identifier_base == "0"
        assert source.validator == metadata.OPENMRS_ID_VALIDATOR

    def test_second_provision_is_rejected(self, identifier_service):
        first = identifier_service.provision(identifier_type=metadata.OPENMRS_ID_UUID, name="First", prefix="M")

        with pytest.raises(AlreadyProvisionedError) as exc_info:
            identifier_service.provision(identifier_type=metadata.OPENMRS_ID_UUID, name="Second", prefix="X")

        assert exc_info.value.status_code == 409
        assert identifier_service.get_source(metadata.OPENMRS_ID_UUID) == first

    def test_unknown_type(self, identifier_service):
        with pytest.raises(IdentifierTypeNotFoundError):
            identifier_service.provision(identifier_type="National ID", name="Nope")

    @pytest.mark.parametrize("kwargs", [
        {"base_character_set": "0123456789"},
        {"first_identifier_base": "1"},
    ])
    def test_missing_configuration_without_validator(self, identifier_service, kwargs):
        with pytest.raises(ConfigError) as exc_info:
            identifier_service.provision(
                identifier_type=metadata.UNIQUE_PATIENT_NUMBER_UUID, name="Incomplete", **kwargs
            )

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize("kwargs", [
        {"base_character_set": "0112", "first_identifier_base": "0"},
        {"base_character_set": "0123456789", "first_identifier_base": "12A"},
        {"base_character_set": "0123456789", "first_identifier_base": "0001", "max_length": 3},
    ])
    def test_inconsistent_configuration(self, identifier_service, kwargs):
        with pytest.raises(ConfigError) as exc_info:
            identifier_service.provision(
                identifier_type=metadata.UNIQUE_PATIENT_NUMBER_UUID, name="Broken", **kwargs
            )

        assert exc_info.value.status_code == 400
        assert identifier_service.find_source(metadata.UNIQUE_PATIENT_NUMBER_UUID) is None

    def test_prefix_must_fit_the_validator(self, identifier_service):
        # S is not a LuhnMod30 character
        with pytest.raises(ConfigError):
            identifier_service.provision(identifier_type=metadata.OPENMRS_ID_UUID, name="MRN", prefix="S")

    def test_max_length_counts_prefix_and_check_character(self, identifier_service):
        # "M" + "98" + check character is four characters long
        with pytest.raises(ConfigError):
            identifier_service.provision(
                identifier_type=metadata.OPENMRS_ID_UUID, name="MRN", prefix="M",
                base_character_set="0123456789", first_identifier_base="98", max_length=3,
            )

        source = identifier_service.provision(
            identifier_type=metadata.OPENMRS_ID_UUID, name="MRN", prefix="M",
            base_character_set="0123456789", first_identifier_base="98", max_length=4,
        )
        assert source.max_length == 4

    def test_unknown_validator_on_type(self, identifier_service, identifier_repo):
        identifier_repo.add_type("Legacy ID", validator="org.example.VerhoeffIdentifierValidator")

        with pytest.raises(ConfigError):
            identifier_service.provision(identifier_type="Legacy ID", name="Legacy")


class TestMinting:
    """Tests for IdentifierService.mint_next()."""

    def test_mrn_source(self, identifier_service):
        identifier_service.setup_mrn_identifier_source()

        assert identifier_service.mint_next(metadata.OPENMRS_ID_UUID) == "M0A"
        assert identifier_service.mint_next(metadata.OPENMRS_ID_NAME) == "M18"

    def test_mrn_source_with_start_value(self, identifier_service):
        identifier_service.setup_mrn_identifier_source("100")

        assert identifier_service.mint_next(metadata.OPENMRS_ID_UUID) == "M1008"

    def test_upn_source(self, identifier_service, upn_source):
        assert upn_source.name == metadata.HIV_UNIQUE_PATIENT_NUMBER_NAME
        assert upn_source.prefix is None
        assert identifier_service.mint_next(metadata.UNIQUE_PATIENT_NUMBER_UUID) == "00001"
        assert identifier_service.mint_next(metadata.UNIQUE_PATIENT_NUMBER_UUID) == "00002"

    def test_minted_identifiers_are_logged(self, identifier_service, identifier_repo, upn_source):
        identifier_service.mint_next(metadata.UNIQUE_PATIENT_NUMBER_UUID, comment="Registration desk")
        identifier_service.mint_next(metadata.UNIQUE_PATIENT_NUMBER_UUID)

        assert identifier_repo.count_logged(upn_source.id) == 2

    def test_type_without_source(self, identifier_service):
        with pytest.raises(IdentifierSourceNotFoundError) as exc_info:
            identifier_service.mint_next(metadata.OPENMRS_ID_UUID)

        assert exc_info.value.status_code == 404


class TestIsValid:
    """Tests for IdentifierService.is_valid()."""

    def test_type_validator_is_used(self, identifier_service):
        assert identifier_service.is_valid("M0A", identifier_type=metadata.OPENMRS_ID_UUID)
        assert not identifier_service.is_valid("M0B", identifier_type=metadata.OPENMRS_ID_UUID)

    def test_named_validator_wins(self, identifier_service):
        assert identifier_service.is_valid("79927398713", validator="LuhnMod10IdentifierValidator")

    def test_minted_identifiers_are_valid(self, identifier_service):
        identifier_service.setup_mrn_identifier_source()

        for _ in range(5):
            identifier = identifier_service.mint_next(metadata.OPENMRS_ID_UUID)
            assert identifier_service.is_valid(identifier, identifier_type=metadata.OPENMRS_ID_UUID)

    def test_no_validator_available(self, identifier_service):
        with pytest.raises(ConfigError) as exc_info:
            identifier_service.is_valid("00001", identifier_type=metadata.UNIQUE_PATIENT_NUMBER_UUID)

        assert exc_info.value.status_code == 400
