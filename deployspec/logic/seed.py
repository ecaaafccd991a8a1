"""Default content used to start an authoring session."""

from __future__ import annotations

from datetime import date
from typing import Optional

from deployspec.models.document import (
    ApiManagement,
    ApiProxy,
    Architecture,
    ChecklistItem,
    Credential,
    Deployment,
    Document,
    DocumentInfo,
    EnvironmentDescriptor,
    ErrorHandling,
    ErrorScenario,
    ExecutiveSummary,
    IntegrationFlow,
    Metric,
    Monitoring,
    Prerequisite,
    ProcessStep,
    ReceiverConfig,
    Security,
    SenderConfig,
    Stakeholder,
    TestScenario,
    Testing,
    VersionEntry,
)

TENANT_URL = "https://[tenant]-tmn.hci.eu1.hana.ondemand.com"


def build_seed_document(today: Optional[date] = None) -> Document:
    """Return a fresh, fully populated starting document."""
    stamp = (today or date.today()).isoformat()
    return Document(
        info=DocumentInfo(
            title="SAP CPI Deployment Document",
            version="1.0",
            author="",
            date_created=stamp,
            status="Draft",
            environment="DEV",
        ),
        versions=[VersionEntry(version="1.0", date=stamp, author="", description="Initial draft")],
        executive=ExecutiveSummary(
            purpose="Describe the business requirements and purpose of this integration.",
            scope="Define what is in scope and out of scope for this deployment.",
            source_systems="S/4HANA, Salesforce",
            target_systems="Third-party Logistics (3PL)",
        ),
        stakeholders=[
            Stakeholder(role="Technical Lead", name="John Doe", contact="john@example.com"),
            Stakeholder(role="Business Owner", name="Jane Smith", contact="jane@example.com"),
        ],
        architecture=Architecture(
            overview="Cloud Integration tenants per landscape tier, connected through Cloud Connector.",
            environments=[
                EnvironmentDescriptor(environment="DEV", url=TENANT_URL, purpose="Unit Testing"),
                EnvironmentDescriptor(environment="QA", url=TENANT_URL, purpose="Integration Testing"),
                EnvironmentDescriptor(environment="PROD", url=TENANT_URL, purpose="Live Operations"),
            ],
        ),
        integration_flows=[
            IntegrationFlow(
                id="IF_001",
                name="Order Synchronization",
                type="Async",
                source="S4HANA",
                target="3PL",
                description="Synchronizes sales orders from ERP to logistics provider in real-time via SOAP.",
                senders=[SenderConfig(adapter="HTTPS", endpoint="/cpi/orders", auth="Client Certificate")],
                receivers=[
                    ReceiverConfig(adapter="SOAP", endpoint="https://3pl.example.com/orders", timeout="60000")
                ],
                steps=[
                    ProcessStep(step=1, type="Content Modifier", description="Store original payload and set headers"),
                    ProcessStep(step=2, type="Message Mapping", description="Map IDoc to target 3PL XML format"),
                    ProcessStep(step=3, type="Request Reply", description="Call 3PL SOAP Service"),
                ],
            )
        ],
        api=ApiManagement(
            proxies=[ApiProxy(name="Order API", base_path="/v1/orders", target="IF_001 endpoint")],
            policies="Rate Limiting: 1000/min\nOAuth 2.0 verified\nSpike Arrest: 100ps",
        ),
        prerequisites=[
            Prerequisite(id="PR_001", description="Cloud Connector configured for S/4HANA", responsible="Basis", status="Open"),
            Prerequisite(id="PR_002", description="3PL test endpoint credentials received", responsible="Integration Team", status="Open"),
        ],
        deployment=Deployment(
            checklist=[
                ChecklistItem(id="CL_001", text="All iFlows tested in QA"),
                ChecklistItem(id="CL_002", text="Security Materials created in target"),
                ChecklistItem(id="CL_003", text="Connectivity verified"),
                ChecklistItem(id="CL_004", text="API Proxies deployed"),
            ],
            steps=(
                "1. Export package from QA tenant.\n"
                "2. Import to PROD tenant.\n"
                "3. Configure externalized parameters (URLs, credentials).\n"
                "4. Deploy all artifacts.\n"
                '5. Verify IF_001 status is "Started".'
            ),
        ),
        testing=Testing(
            scenarios=[
                TestScenario(
                    id="TC001",
                    scenario="Happy Path Order",
                    input="Valid Order XML (Order #12345)",
                    expected="HTTP 200 OK, Order created in target",
                ),
                TestScenario(
                    id="TC002",
                    scenario="Invalid Data",
                    input="Missing mandatory fields",
                    expected="HTTP 400 Bad Request, Error logged in CPI",
                ),
            ]
        ),
        security=Security(
            credentials=[
                Credential(name="S4_User", type="User Credentials", usage="Inbound Basic Auth"),
                Credential(name="3PL_Cert", type="Client Certificate", usage="Outbound Mutual TLS"),
            ]
        ),
        monitoring=Monitoring(
            metrics=[
                Metric(metric="Error Rate", threshold="> 5%", alert_type="Critical Email to Support"),
                Metric(metric="Processing Time", threshold="> 10s", alert_type="Warning Notification"),
            ]
        ),
        error_handling=ErrorHandling(
            scenarios=[
                ErrorScenario(
                    error="Receiver timeout",
                    cause="3PL endpoint unavailable",
                    resolution="Automatic retry via JMS queue, 5 attempts",
                    notification="Support mailbox",
                ),
                ErrorScenario(
                    error="Mapping failure",
                    cause="Unexpected IDoc segment",
                    resolution="Message stored in data store for manual reprocessing",
                    notification="Integration Team",
                ),
            ]
        ),
    )


__all__ = ["build_seed_document", "TENANT_URL"]
