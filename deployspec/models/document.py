"""Pydantic models for the deployment specification document.

The root :class:`Document` aggregates named sections. Each section is either
a single record or an ordered list of records, and every section has a
default so a constructed root is always complete.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class DocumentInfo(BaseModel):
    title: str = ""
    version: str = ""
    author: str = ""
    date_created: str = ""
    status: str = ""
    environment: str = ""
    # Cover image; blank means no logo
    logo_url: str = ""


class VersionEntry(BaseModel):
    version: str = ""
    date: str = ""
    author: str = ""
    description: str = ""


class ExecutiveSummary(BaseModel):
    purpose: str = ""
    scope: str = ""
    source_systems: str = ""
    target_systems: str = ""


class Stakeholder(BaseModel):
    role: str = ""
    name: str = ""
    contact: str = ""


class EnvironmentDescriptor(BaseModel):
    environment: str = ""
    url: str = ""
    purpose: str = ""


class Architecture(BaseModel):
    overview: str = ""
    environments: List[EnvironmentDescriptor] = Field(default_factory=list)


class SenderConfig(BaseModel):
    adapter: str = ""
    endpoint: str = ""
    auth: str = ""


class ReceiverConfig(BaseModel):
    adapter: str = ""
    endpoint: str = ""
    timeout: str = ""


class ProcessStep(BaseModel):
    step: int = 0
    type: str = ""
    description: str = ""


class IntegrationFlow(BaseModel):
    """One integration flow (iFlow) with its adapters and processing steps."""

    id: str = ""
    name: str = ""
    type: str = ""
    source: str = ""
    target: str = ""
    description: str = ""
    senders: List[SenderConfig] = Field(default_factory=list)
    receivers: List[ReceiverConfig] = Field(default_factory=list)
    steps: List[ProcessStep] = Field(default_factory=list)


class ApiProxy(BaseModel):
    name: str = ""
    base_path: str = ""
    target: str = ""


class ApiManagement(BaseModel):
    proxies: List[ApiProxy] = Field(default_factory=list)
    policies: str = ""


class Prerequisite(BaseModel):
    id: str = ""
    description: str = ""
    responsible: str = ""
    status: str = ""


class ChecklistItem(BaseModel):
    id: str = ""
    text: str = ""
    checked: bool = False


class Deployment(BaseModel):
    checklist: List[ChecklistItem] = Field(default_factory=list)
    steps: str = ""


class TestScenario(BaseModel):
    __test__ = False  # keep pytest from collecting this model

    id: str = ""
    scenario: str = ""
    input: str = ""
    expected: str = ""


class Testing(BaseModel):
    __test__ = False

    scenarios: List[TestScenario] = Field(default_factory=list)


class Credential(BaseModel):
    name: str = ""
    type: str = ""
    usage: str = ""


class Security(BaseModel):
    credentials: List[Credential] = Field(default_factory=list)


class Metric(BaseModel):
    metric: str = ""
    threshold: str = ""
    alert_type: str = ""


class Monitoring(BaseModel):
    metrics: List[Metric] = Field(default_factory=list)


class ErrorScenario(BaseModel):
    error: str = ""
    cause: str = ""
    resolution: str = ""
    notification: str = ""


class ErrorHandling(BaseModel):
    scenarios: List[ErrorScenario] = Field(default_factory=list)


class Document(BaseModel):
    """Root of the entity graph; one instance is one snapshot."""

    info: DocumentInfo = Field(default_factory=DocumentInfo)
    versions: List[VersionEntry] = Field(default_factory=list)
    executive: ExecutiveSummary = Field(default_factory=ExecutiveSummary)
    stakeholders: List[Stakeholder] = Field(default_factory=list)
    architecture: Architecture = Field(default_factory=Architecture)
    integration_flows: List[IntegrationFlow] = Field(default_factory=list)
    api: ApiManagement = Field(default_factory=ApiManagement)
    prerequisites: List[Prerequisite] = Field(default_factory=list)
    deployment: Deployment = Field(default_factory=Deployment)
    testing: Testing = Field(default_factory=Testing)
    security: Security = Field(default_factory=Security)
    monitoring: Monitoring = Field(default_factory=Monitoring)
    error_handling: ErrorHandling = Field(default_factory=ErrorHandling)


__all__ = [
    "DocumentInfo",
    "VersionEntry",
    "ExecutiveSummary",
    "Stakeholder",
    "EnvironmentDescriptor",
    "Architecture",
    "SenderConfig",
    "ReceiverConfig",
    "ProcessStep",
    "IntegrationFlow",
    "ApiProxy",
    "ApiManagement",
    "Prerequisite",
    "ChecklistItem",
    "Deployment",
    "TestScenario",
    "Testing",
    "Credential",
    "Security",
    "Metric",
    "Monitoring",
    "ErrorScenario",
    "ErrorHandling",
    "Document",
]
