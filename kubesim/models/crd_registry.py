"""
Fixed catalog of custom resource kinds the simulator knows how to install.

Each entry couples a descriptor with a sample factory. Cluster scoped kinds
produce one set of samples, namespaced kinds are replicated into every
namespace they are installed for.
"""
from typing import Callable, Dict, List, NamedTuple

import kubesim.constants as const
from kubesim.models.cluster_components import (
    Crd,
    CrdDescriptor,
    CrdScope,
    CustomResource,
    CustomResourceMetadata,
)
from kubesim.utils.output import days_ago

GROUP = "choreo.dev"
VERSION = "v1alpha1"


class SampleSpec(NamedTuple):
    name: str
    age_days: float
    spec: dict
    status: dict


class CrdRegistryEntry(NamedTuple):
    descriptor: CrdDescriptor
    # namespace -> sample specs; the namespace is "" for cluster scoped kinds
    samples: Callable[[str], List[SampleSpec]]


def _descriptor(kind: str, plural: str, scope: CrdScope) -> CrdDescriptor:
    return CrdDescriptor(
        group=GROUP,
        version=VERSION,
        kind=kind,
        plural=plural,
        singular=kind.lower(),
        scope=scope,
    )


CRD_REGISTRY: Dict[str, CrdRegistryEntry] = {
    "organization": CrdRegistryEntry(
        _descriptor("Organization", "organizations", CrdScope.cluster),
        lambda ns: [
            SampleSpec("acme-corp", 10, {
                "displayName": "ACME Corporation",
                "description": "Enterprise organization for ACME products",
            }, {"phase": "Active"}),
            SampleSpec("demo-org", 15, {
                "displayName": "Demo Organization",
                "description": "Sample organization for testing",
            }, {"phase": "Active"}),
        ],
    ),
    "project": CrdRegistryEntry(
        _descriptor("Project", "projects", CrdScope.namespaced),
        lambda ns: [
            SampleSpec("web-app", 8, {
                "displayName": "Web Application",
                "description": "Main customer-facing web application",
                "organizationRef": {"name": "acme-corp"},
            }, {"phase": "Active"}),
            SampleSpec("api-backend", 7, {
                "displayName": "API Backend",
                "description": "REST API backend services",
                "organizationRef": {"name": "acme-corp"},
            }, {"phase": "Active"}),
        ],
    ),
    "component": CrdRegistryEntry(
        _descriptor("Component", "components", CrdScope.namespaced),
        lambda ns: [
            SampleSpec("frontend", 5, {
                "displayName": "Frontend UI",
                "description": "React-based frontend application",
                "projectRef": {"name": "web-app", "namespace": ns},
                "componentType": "web",
                "repository": "https://github.com/acme-corp/frontend",
            }, {"phase": "Ready"}),
            SampleSpec("user-service", 5, {
                "displayName": "User Service",
                "description": "User management microservice",
                "projectRef": {"name": "api-backend", "namespace": ns},
                "componentType": "service",
                "repository": "https://github.com/acme-corp/user-service",
            }, {"phase": "Ready"}),
        ],
    ),
    "build": CrdRegistryEntry(
        _descriptor("Build", "builds", CrdScope.namespaced),
        lambda ns: [
            SampleSpec("frontend-build-1", 2, {
                "componentRef": {"name": "frontend", "namespace": ns},
                "gitCommit": "a1b2c3d",
                "buildType": "container",
            }, {"phase": "Succeeded"}),
            SampleSpec("user-service-build-2", 1, {
                "componentRef": {"name": "user-service", "namespace": ns},
                "gitCommit": "e4f5g6h",
                "buildType": "container",
            }, {"phase": "Succeeded"}),
        ],
    ),
    "deployableartifact": CrdRegistryEntry(
        _descriptor("DeployableArtifact", "deployableartifacts", CrdScope.namespaced),
        lambda ns: [
            SampleSpec("frontend-v1.2.0", 1, {
                "buildRef": {"name": "frontend-build-1", "namespace": ns},
                "version": "v1.2.0",
                "imageRef": "acme/frontend:v1.2.0",
            }, {"phase": "Available"}),
            SampleSpec("user-service-v2.1.0", 1, {
                "buildRef": {"name": "user-service-build-2", "namespace": ns},
                "version": "v2.1.0",
                "imageRef": "acme/user-service:v2.1.0",
            }, {"phase": "Available"}),
        ],
    ),
    "environment": CrdRegistryEntry(
        _descriptor("Environment", "environments", CrdScope.namespaced),
        lambda ns: [
            SampleSpec(env, age, {
                "displayName": display,
                "description": description,
                "projectRef": {"name": "web-app", "namespace": ns},
                "type": env_type,
            }, {"phase": "Ready"})
            for env, age, display, description, env_type in [
                ("dev", 12, "Development", "Development environment", "non-production"),
                ("staging", 10, "Staging", "Staging environment for testing", "non-production"),
                ("production", 10, "Production", "Production environment", "production"),
            ]
        ],
    ),
    "resourcetype": CrdRegistryEntry(
        _descriptor("ResourceType", "resourcetypes", CrdScope.cluster),
        lambda ns: [
            SampleSpec(name, 20, {
                "displayName": display,
                "description": description,
                "category": category,
                "provider": provider,
            }, {"phase": "Available"})
            for name, display, description, category, provider in [
                ("postgres-db", "PostgreSQL Database", "Managed PostgreSQL database instance", "database", "aws-rds"),
                ("redis-cache", "Redis Cache", "Managed Redis cache instance", "cache", "aws-elasticache"),
                ("s3-bucket", "S3 Bucket", "AWS S3 object storage bucket", "storage", "aws-s3"),
            ]
        ],
    ),
    "dataplane": CrdRegistryEntry(
        _descriptor("DataPlane", "dataplanes", CrdScope.cluster),
        lambda ns: [
            SampleSpec("default-dp", 15, {
                "displayName": "Default Data Plane",
                "description": "Primary data plane for application workloads",
                "region": "us-west-2",
                "clusterRef": {"name": "production-cluster"},
            }, {"phase": "Ready", "health": "Healthy"}),
        ],
    ),
    "idp": CrdRegistryEntry(
        CrdDescriptor(
            group=GROUP,
            version=VERSION,
            kind="IdentityProvider",
            plural="idps",
            singular="idp",
            scope=CrdScope.cluster,
        ),
        lambda ns: [
            SampleSpec("corporate-sso", 30, {
                "displayName": "Corporate SSO",
                "description": "SAML-based corporate identity provider",
                "type": "saml",
                "issuer": "https://sso.acme-corp.com",
            }, {"phase": "Active", "connected": True}),
            SampleSpec("github-oauth", 25, {
                "displayName": "GitHub OAuth",
                "description": "OAuth integration with GitHub",
                "type": "oauth2",
                "issuer": "https://github.com",
            }, {"phase": "Active", "connected": True}),
        ],
    ),
}


class CrdFactory:
    @staticmethod
    def create_crd(entry: CrdRegistryEntry, now: int) -> Crd:
        descriptor = entry.descriptor
        return Crd(
            name=f"{descriptor.plural}.{descriptor.group}",
            group=descriptor.group,
            version=descriptor.version,
            kind=descriptor.kind,
            plural=descriptor.plural,
            singular=descriptor.singular,
            scope=descriptor.scope,
            creation_timestamp=days_ago(const.CRD_INSTALL_AGE_DAYS, now),
        )

    @staticmethod
    def create_samples(entry: CrdRegistryEntry, now: int, namespace: str = "") -> List[CustomResource]:
        descriptor = entry.descriptor
        if descriptor.scope == CrdScope.cluster.value:
            namespace = ""
        return [
            CustomResource(
                api_version=f"{descriptor.group}/{descriptor.version}",
                kind=descriptor.kind,
                metadata=CustomResourceMetadata(
                    name=sample.name,
                    namespace=namespace,
                    creation_timestamp=days_ago(sample.age_days, now),
                ),
                spec=sample.spec,
                status=sample.status,
            )
            for sample in entry.samples(namespace)
        ]
