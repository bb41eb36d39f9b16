"""
Catalog of the resource types served by the record server.

Each resource gets the same generic controller; the differences between them are
captured declaratively by :class:`ResourceConfig`.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from fhir_server.store.base import collection_name

RESOURCE_NAMES: tuple[str, ...] = (
    "Appointment",
    "ReferralRequest",
    "Account",
    "Provenance",
    "Questionnaire",
    "ExplanationOfBenefit",
    "DocumentManifest",
    "Specimen",
    "AllergyIntolerance",
    "CarePlan",
    "Goal",
    "StructureDefinition",
    "EnrollmentRequest",
    "EpisodeOfCare",
    "OperationOutcome",
    "Medication",
    "Procedure",
    "List",
    "ConceptMap",
    "Subscription",
    "ValueSet",
    "OperationDefinition",
    "DocumentReference",
    "Order",
    "Immunization",
    "Device",
    "VisionPrescription",
    "Media",
    "Conformance",
    "ProcedureRequest",
    "EligibilityResponse",
    "DeviceUseRequest",
    "DeviceMetric",
    "Flag",
    "RelatedPerson",
    "SupplyRequest",
    "Practitioner",
    "AppointmentResponse",
    "Observation",
    "MedicationAdministration",
    "Slot",
    "EnrollmentResponse",
    "Binary",
    "MedicationStatement",
    "Person",
    "Contract",
    "CommunicationRequest",
    "RiskAssessment",
    "TestScript",
    "Basic",
    "Group",
    "PaymentNotice",
    "Organization",
    "ImplementationGuide",
    "ClaimResponse",
    "EligibilityRequest",
    "ProcessRequest",
    "MedicationDispense",
    "DiagnosticReport",
    "ImagingStudy",
    "ImagingObjectSelection",
    "HealthcareService",
    "DataElement",
    "DeviceComponent",
    "FamilyMemberHistory",
    "NutritionOrder",
    "Encounter",
    "Substance",
    "AuditEvent",
    "MedicationOrder",
    "SearchParameter",
    "PaymentReconciliation",
    "Communication",
    "Condition",
    "Composition",
    "DetectedIssue",
    "Bundle",
    "DiagnosticOrder",
    "Patient",
    "OrderResponse",
    "Coverage",
    "QuestionnaireResponse",
    "DeviceUseStatement",
    "ProcessResponse",
    "NamingSystem",
    "Schedule",
    "SupplyDelivery",
    "ClinicalImpression",
    "MessageHeader",
    "Claim",
    "ImmunizationRecommendation",
    "Location",
    "BodySite",
)

# Resources whose search results are wrapped in titled entries.
ENTRY_WRAPPED: frozenset[str] = frozenset({"Goal", "ProcessRequest"})

# Search parameter -> document path, on top of the ``_id`` parameter every
# resource understands.
_PATIENT_REFERENCE = {"patient": "patient.referenceid"}
_SUBJECT_REFERENCE = {
    "patient": "subject.referenceid",
    "subject": "subject.referenceid",
}

SEARCH_PARAMETERS: dict[str, dict[str, str]] = {
    "AllergyIntolerance": _PATIENT_REFERENCE,
    "Condition": _PATIENT_REFERENCE,
    "Encounter": _PATIENT_REFERENCE,
    "Goal": _PATIENT_REFERENCE,
    "Immunization": _PATIENT_REFERENCE,
    "MedicationStatement": _PATIENT_REFERENCE,
    "Procedure": {"patient": "subject.referenceid"},
    "CarePlan": _SUBJECT_REFERENCE,
    "DiagnosticReport": _SUBJECT_REFERENCE,
    "Observation": _SUBJECT_REFERENCE,
}


@dataclass(frozen=True)
class ResourceConfig:
    """
    Per-resource configuration for the generic controller.

    :param name: Resource type name, used in routes, titles and the context.
    :param wrap_entries: Wrap search results in ``{"title", "id", "content"}``
        entries instead of returning the bare records.
    :param search_params: Recognised search parameters mapped to the document
        path they filter on by equality.
    """

    name: str
    wrap_entries: bool = False
    search_params: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({"_id": "id"})
    )

    @property
    def collection_name(self) -> str:
        return collection_name(self.name)


def resource_config(name: str) -> ResourceConfig:
    """Build the configuration for one resource type of the catalog."""
    return ResourceConfig(
        name=name,
        wrap_entries=name in ENTRY_WRAPPED,
        search_params=MappingProxyType(
            {"_id": "id", **SEARCH_PARAMETERS.get(name, {})}
        ),
    )


def build_catalog(names: tuple[str, ...] = RESOURCE_NAMES) -> dict[str, ResourceConfig]:
    return {name: resource_config(name) for name in names}
