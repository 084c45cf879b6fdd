"""Resource graph query catalog.

Seven fixed queries against the ``securityresources`` table. Each query is a
filter on one canonical Microsoft Defender for Cloud type identifier followed
by a fixed projection. The texts are constants: the row cap travels next to the
text in :class:`QueryDefinition` and is handed to the execution call, it is
never interpolated into the query.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from contracts.export_contracts import ROW_CAP

SECURE_SCORES_TYPE = "microsoft.security/securescores"
SECURE_SCORE_CONTROLS_TYPE = "microsoft.security/securescores/securescorecontrols"
ASSESSMENTS_TYPE = "microsoft.security/assessments"
COMPLIANCE_STANDARDS_TYPE = "microsoft.security/regulatorycompliancestandards"
COMPLIANCE_CONTROLS_TYPE = "microsoft.security/regulatorycompliancestandards/regulatorycompliancecontrols"
COMPLIANCE_ASSESSMENTS_TYPE = (
    "microsoft.security/regulatorycompliancestandards/regulatorycompliancecontrols"
    "/regulatorycomplianceassessments"
)

SECURE_SCORES_QUERY = f"""securityresources
| where type == "{SECURE_SCORES_TYPE}"
| extend percentageScore = properties.score.percentage,
         currentScore = properties.score.current,
         maxScore = properties.score.max,
         weight = properties.weight
| project tenantId, subscriptionId, name, percentageScore, currentScore, maxScore, weight"""

SECURE_SCORE_CONTROLS_QUERY = f"""securityresources
| where type == "{SECURE_SCORE_CONTROLS_TYPE}"
| extend controlName = properties.displayName,
         currentScore = properties.score.current,
         maxScore = properties.score.max,
         percentageScore = properties.score.percentage,
         healthyResources = properties.healthyResourceCount,
         unhealthyResources = properties.unhealthyResourceCount,
         notApplicableResources = properties.notApplicableResourceCount,
         weight = properties.weight
| project tenantId, subscriptionId, name, controlName, currentScore, maxScore, percentageScore,
          healthyResources, unhealthyResources, notApplicableResources, weight"""

ASSESSMENTS_QUERY = f"""securityresources
| where type == "{ASSESSMENTS_TYPE}"
| extend assessmentKey = name,
         displayName = properties.displayName,
         statusCode = properties.status.code,
         statusCause = properties.status.cause,
         severity = properties.metadata.severity,
         category = properties.metadata.categories,
         resourceId = properties.resourceDetails.Id,
         resourceSource = properties.resourceDetails.Source
| project tenantId, subscriptionId, resourceGroup, assessmentKey, displayName, statusCode,
          statusCause, severity, category, resourceId, resourceSource"""

RECOMMENDATIONS_QUERY = f"""securityresources
| where type == "{ASSESSMENTS_TYPE}"
| where properties.status.code == "Unhealthy"
| extend assessmentKey = name,
         displayName = properties.displayName,
         severity = properties.metadata.severity,
         description = properties.metadata.description,
         remediation = properties.metadata.remediationDescription,
         category = properties.metadata.categories,
         resourceId = properties.resourceDetails.Id,
         portalLink = properties.links.azurePortal
| project tenantId, subscriptionId, resourceGroup, assessmentKey, displayName, severity,
          description, remediation, category, resourceId, portalLink"""

COMPLIANCE_STANDARDS_QUERY = f"""securityresources
| where type == "{COMPLIANCE_STANDARDS_TYPE}"
| extend standardName = name,
         state = properties.state,
         passedControls = properties.passedControls,
         failedControls = properties.failedControls,
         skippedControls = properties.skippedControls,
         unsupportedControls = properties.unsupportedControls
| project tenantId, subscriptionId, standardName, state, passedControls, failedControls,
          skippedControls, unsupportedControls"""

COMPLIANCE_CONTROLS_QUERY = f"""securityresources
| where type == "{COMPLIANCE_CONTROLS_TYPE}"
| extend standardName = tostring(split(id, "/")[6]),
         controlName = name,
         description = properties.description,
         state = properties.state,
         passedAssessments = properties.passedAssessments,
         failedAssessments = properties.failedAssessments,
         skippedAssessments = properties.skippedAssessments
| project tenantId, subscriptionId, standardName, controlName, description, state,
          passedAssessments, failedAssessments, skippedAssessments"""

COMPLIANCE_ASSESSMENTS_QUERY = f"""securityresources
| where type == "{COMPLIANCE_ASSESSMENTS_TYPE}"
| extend standardName = tostring(split(id, "/")[6]),
         controlName = tostring(split(id, "/")[8]),
         assessmentName = name,
         description = properties.description,
         assessmentType = properties.assessmentType,
         state = properties.state,
         passedResources = properties.passedResources,
         failedResources = properties.failedResources,
         skippedResources = properties.skippedResources
| project tenantId, subscriptionId, standardName, controlName, assessmentName, description,
          assessmentType, state, passedResources, failedResources, skippedResources"""


@dataclass(frozen=True)
class QueryDefinition:
    """One catalog entry: what to run, how many rows to ask for, where it goes."""

    kind: str
    label: str
    base_name: str
    text: str
    row_cap: int = ROW_CAP

    def __post_init__(self) -> None:
        if self.row_cap < 1:
            raise ValueError(f"row_cap must be >= 1 (got {self.row_cap})")


def secure_scores_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    return QueryDefinition("secure_scores", "Secure Scores", "SecureScores", SECURE_SCORES_QUERY, row_cap)


def secure_score_controls_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    return QueryDefinition(
        "secure_score_controls",
        "Secure Score Controls",
        "SecureScoreControls",
        SECURE_SCORE_CONTROLS_QUERY,
        row_cap,
    )


def assessments_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    return QueryDefinition(
        "assessments", "Security Assessments", "SecurityAssessments", ASSESSMENTS_QUERY, row_cap
    )


def recommendations_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    """Assessments filtered server-side to unhealthy status."""
    return QueryDefinition(
        "recommendations",
        "Security Recommendations",
        "SecurityRecommendations",
        RECOMMENDATIONS_QUERY,
        row_cap,
    )


def compliance_standards_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    return QueryDefinition(
        "compliance_standards",
        "Compliance Standards",
        "ComplianceStandards",
        COMPLIANCE_STANDARDS_QUERY,
        row_cap,
    )


def compliance_controls_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    return QueryDefinition(
        "compliance_controls",
        "Compliance Controls",
        "ComplianceControls",
        COMPLIANCE_CONTROLS_QUERY,
        row_cap,
    )


def compliance_assessments_query(row_cap: int = ROW_CAP) -> QueryDefinition:
    return QueryDefinition(
        "compliance_assessments",
        "Compliance Assessments",
        "ComplianceAssessments",
        COMPLIANCE_ASSESSMENTS_QUERY,
        row_cap,
    )


def catalog(
    *,
    include_recommendations: bool = False,
    include_compliance: bool = False,
    row_cap: int = ROW_CAP,
) -> List[QueryDefinition]:
    """Return the queries a run executes, in execution order."""
    queries = [
        secure_scores_query(row_cap),
        secure_score_controls_query(row_cap),
        assessments_query(row_cap),
    ]
    if include_recommendations:
        queries.append(recommendations_query(row_cap))
    if include_compliance:
        queries.extend(
            [
                compliance_standards_query(row_cap),
                compliance_controls_query(row_cap),
                compliance_assessments_query(row_cap),
            ]
        )
    return queries


ALL_QUERIES = (
    secure_scores_query,
    secure_score_controls_query,
    assessments_query,
    recommendations_query,
    compliance_standards_query,
    compliance_controls_query,
    compliance_assessments_query,
)
