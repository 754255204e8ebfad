"""
Service layer for identifier sources.

Architecture:
    API Layer (routers) → IdentifierService → IdentifierRepository → Database
                                            → SequentialIdentifierGenerator

Dependency Injection:
    Use emr_svc.core.dependencies.get_identifier_service() in routers with Depends().
"""
import logging
from typing import Optional

from fastapi import status

from emr_svc.core import metadata
from emr_svc.core.exceptions import (
    AlreadyProvisionedError,
    ConfigError,
    IdentifierSourceNotFoundError,
    IdentifierTypeNotFoundError,
    InvalidIdentifierError,
)
from emr_svc.models.identifier import IdentifierSourceConfig, IdentifierType
from emr_svc.repositories import IdentifierRepository
from emr_svc.services.idgen.charset import BaseCharacterSet
from emr_svc.services.idgen.generator import SequentialIdentifierGenerator, decode
from emr_svc.services.idgen.validators import get_validator

logger = logging.getLogger(__name__)

MRN_PREFIX = "M"
UPN_BASE_CHARACTERS = "0123456789"


def _invalid_input(detail: str, **context) -> ConfigError:
    return ConfigError(detail, status_code=status.HTTP_400_BAD_REQUEST, **context)


class IdentifierService:
    """
    Provisions identifier sources and mints identifiers from them.
    """

    def __init__(self, identifier_repository: IdentifierRepository, generator: SequentialIdentifierGenerator):
        """
        Initialize the identifier service.

        Args:
            identifier_repository: Identifier metadata and sequence storage.
            generator: Process-wide generator holding the per-source locks.
        """
        self._repo = identifier_repository
        self._generator = generator

    def get_type(self, identifier_type: str) -> IdentifierType:
        """
        Get an identifier type by uuid or name.

        Raises:
            IdentifierTypeNotFoundError: If the type does not exist.
        """
        found = self._repo.get_type(identifier_type)
        if found is None:
            raise IdentifierTypeNotFoundError(identifier_type=identifier_type)
        return found

    def find_source(self, identifier_type: str) -> Optional[IdentifierSourceConfig]:
        return self._repo.get_source_for_type(self.get_type(identifier_type).id)

    def get_source(self, identifier_type: str) -> IdentifierSourceConfig:
        """
        Raises:
            IdentifierSourceNotFoundError: If the type has no source yet.
        """
        source = self.find_source(identifier_type)
        if source is None:
            raise IdentifierSourceNotFoundError(identifier_type=identifier_type)
        return source

    def provision(
        self,
        identifier_type: str,
        name: str,
        description: Optional[str] = None,
        base_character_set: Optional[str] = None,
        first_identifier_base: Optional[str] = None,
        prefix: Optional[str] = None,
        max_length: Optional[int] = None,
    ) -> IdentifierSourceConfig:
        """
        Create the identifier source of an identifier type.

        When the type names a validator, the base character set defaults to
        the validator's and the first identifier base to its zero
        character. Without a validator both must be given.

        Raises:
            IdentifierTypeNotFoundError: If the type does not exist.
            AlreadyProvisionedError: If the type already has a source.
            ConfigError: If the configuration is incomplete or inconsistent.
        """
        id_type = self.get_type(identifier_type)
        if self._repo.get_source_for_type(id_type.id) is not None:
            logger.warning(f"Identifier source already exists for {id_type.name}")
            raise AlreadyProvisionedError(identifier_type=id_type.name)

        validator = get_validator(id_type.validator)

        if not first_identifier_base:
            if validator is None:
                raise _invalid_input(
                    f"A first identifier base is required for {id_type.name}, which has no validator",
                    identifier_type=id_type.name,
                )
            first_identifier_base = validator.base.zero

        if not base_character_set:
            if validator is None:
                raise _invalid_input(
                    f"A base character set is required for {id_type.name}, which has no validator",
                    identifier_type=id_type.name,
                )
            base_character_set = validator.base.characters

        try:
            base = BaseCharacterSet(base_character_set)
            seed = decode(first_identifier_base, base)
        except (ConfigError, InvalidIdentifierError) as exc:
            raise _invalid_input(exc.detail, **exc.context) from exc

        if validator is not None:
            checked = (prefix or "") + base.characters
            if not validator.base.contains(checked):
                raise _invalid_input(
                    f"Prefix and base characters must be within the {validator.name} "
                    f"characters '{validator.base.characters}'",
                    identifier_type=id_type.name,
                )

        first_length = len(prefix or "") + len(first_identifier_base) + (1 if validator is not None else 0)
        if max_length is not None and max_length < first_length:
            raise _invalid_input(
                f"max_length {max_length} is shorter than the first identifier ({first_length} characters)",
                identifier_type=id_type.name,
            )

        source = self._repo.add_source(
            identifier_type=id_type,
            name=name,
            description=description or f"Identifier Generator for {id_type.name}",
            prefix=prefix,
            base_character_set=base.characters,
            first_identifier_base=first_identifier_base,
            first_sequence_value=seed,
            max_length=max_length,
        )
        if source is None:
            # Lost a race with a concurrent provision of the same type
            raise AlreadyProvisionedError(identifier_type=id_type.name)

        logger.info(
            f"Identifier source provisioned: {name} for {id_type.name}",
            extra={"source_id": source.id, "first_identifier_base": first_identifier_base}
        )
        return source

    def mint_next(self, identifier_type: str, comment: Optional[str] = None) -> str:
        """
        Take the next identifier of a type and log it with the comment.

        Raises:
            IdentifierTypeNotFoundError, IdentifierSourceNotFoundError,
            CapacityError, ConfigError
        """
        source = self.get_source(identifier_type)
        identifier = self._generator.mint_next(source)
        self._repo.log_identifier(source.id, identifier, comment)
        logger.info(f"Identifier generated from {source.name}", extra={"source_id": source.id, "comment": comment})
        return identifier

    def is_valid(
        self,
        identifier: str,
        identifier_type: Optional[str] = None,
        validator: Optional[str] = None,
    ) -> bool:
        """
        Check an identifier against a named validator or the type's validator.

        Raises:
            ConfigError: If neither names a validator.
        """
        if validator is None and identifier_type is not None:
            validator = self.get_type(identifier_type).validator

        found = get_validator(validator)
        if found is None:
            raise _invalid_input("No validator to check the identifier against", identifier_type=identifier_type)
        return found.is_valid(identifier)

    # =========================================================================
    # KENYAEMR SOURCES
    # =========================================================================

    def setup_mrn_identifier_source(self, start_from: Optional[str] = None) -> IdentifierSourceConfig:
        """Provision the medical record number source (OpenMRS ID, prefix M)."""
        return self.provision(
            identifier_type=metadata.OPENMRS_ID_UUID,
            name=metadata.OPENMRS_MEDICAL_RECORD_NUMBER_NAME,
            first_identifier_base=start_from,
            prefix=MRN_PREFIX,
        )

    def setup_hiv_unique_identifier_source(self, start_from: Optional[str] = None) -> IdentifierSourceConfig:
        """Provision the HIV unique patient number source (decimal, no prefix)."""
        return self.provision(
            identifier_type=metadata.UNIQUE_PATIENT_NUMBER_UUID,
            name=metadata.HIV_UNIQUE_PATIENT_NUMBER_NAME,
            base_character_set=UPN_BASE_CHARACTERS,
            first_identifier_base=start_from,
        )
