"""Deterministic placeholder objects, one per schema.

Every call returns a fresh copy, so callers may mutate the result.  Each
placeholder already satisfies its schema: normalizing it changes nothing.
"""

from __future__ import annotations

import copy
from typing import Any

from planforge.schemas.models import SchemaKind


def _feature(feature_id: str, name: str, description: str) -> dict[str, str]:
    return {"id": feature_id, "name": name, "description": description}


_PROJECT_STRUCTURE: dict[str, Any] = {
    "title": "Untitled Project",
    "description": "A comprehensive solution for the requested project",
    "coreFeatures": [
        _feature(
            "user_management",
            "User Management System",
            "Complete user registration, authentication, and profile management system",
        ),
        _feature(
            "core_functionality",
            "Core Business Logic",
            "Implement the primary functionality that solves the main problem described in the project idea",
        ),
        _feature(
            "data_management",
            "Data Management",
            "Secure data storage, retrieval, and management systems for all project data",
        ),
        _feature(
            "user_interface",
            "User Interface & Navigation",
            "Intuitive and responsive user interface with clear navigation and user experience",
        ),
        _feature(
            "security_privacy",
            "Security & Privacy",
            "Comprehensive security measures and privacy protection for user data and system integrity",
        ),
    ],
    "suggestedFeatures": [
        _feature(
            "admin_dashboard",
            "Administrative Dashboard",
            "Comprehensive admin panel for system management, user oversight, and analytics",
        ),
        _feature(
            "analytics_reporting",
            "Analytics & Reporting",
            "Detailed analytics and reporting capabilities for tracking usage and performance metrics",
        ),
        _feature("notifications", "Notification System", "Multi-channel notification system for email, SMS, and in-app alerts"),
        _feature(
            "search_discovery",
            "Search & Discovery",
            "Advanced search functionality with filters, sorting, and discovery features",
        ),
        _feature(
            "mobile_optimization",
            "Mobile Optimization",
            "Mobile-responsive design and potential native mobile app development",
        ),
        _feature(
            "api_integration",
            "Third-party Integrations",
            "Integration capabilities with external services and APIs for enhanced functionality",
        ),
        _feature("backup_recovery", "Backup & Recovery", "Automated backup systems and disaster recovery procedures"),
        _feature(
            "performance_optimization",
            "Performance Optimization",
            "System performance monitoring and optimization for scalability and speed",
        ),
    ],
}

# (sprint name, focus, [(task title, task description), ...])
_SPRINT_TEMPLATES: list[tuple[str, str, list[tuple[str, str]]]] = [
    (
        "Project Setup",
        "Infrastructure and foundations",
        [
            ("Project Repository Setup", "Initialize the project repository with proper structure and configuration"),
            ("Development Environment Setup", "Configure development environments with necessary tools and dependencies"),
            ("CI/CD Pipeline Configuration", "Set up continuous integration and deployment pipelines"),
            ("Architecture Design", "Create detailed architecture documents and diagrams"),
        ],
    ),
    (
        "Core Features",
        "Core functionality",
        [
            ("Database Schema Design", "Design and implement the database schema for core entities"),
            ("Authentication System", "Implement user authentication and authorization"),
            ("Core API Endpoints", "Develop essential API endpoints for core functionality"),
            ("Basic UI Components", "Create reusable UI components for the application"),
        ],
    ),
    (
        "Testing and Deployment",
        "Quality, hardening and release",
        [
            ("Comprehensive Testing Suite", "Develop unit, integration, and end-to-end tests"),
            ("Performance Optimization", "Optimize application performance and loading times"),
            ("Security Audit", "Conduct security review and implement necessary improvements"),
            ("Production Environment Setup", "Configure production environment and infrastructure"),
        ],
    ),
]


def _sprint_track(prefix: str, assisted: bool) -> dict[str, Any]:
    sprints = []
    for number, (name, focus, tasks) in enumerate(_SPRINT_TEMPLATES, start=1):
        task_entries = []
        for index, (title, description) in enumerate(tasks, start=1):
            task_entries.append(
                {
                    "id": f"{prefix}-s{number}-t{index}",
                    "title": title,
                    "description": description,
                    "dependencies": [f"{prefix}-s{number}-t{index - 1}"] if index > 1 else [],
                    "priority": "high" if index <= 2 else "medium",
                    "estimatedHours": (2 if assisted else 4) + index * 2,
                }
            )
        sprints.append(
            {
                "name": f"Sprint {number}: {name}",
                "duration": "2 weeks",
                "sprintNumber": number,
                "focus": focus,
                "featuresImplemented": [],
                "objectives": [f"Complete {name.lower()} work"],
                "tasks": task_entries,
            }
        )
    return {"sprints": sprints}


def _sprint_plan() -> dict[str, Any]:
    return {
        "projectAnalysis": {
            "complexityLevel": "Moderate",
            "totalFeatures": 0,
            "suggestedSprints": len(_SPRINT_TEMPLATES),
            "actualSprints": len(_SPRINT_TEMPLATES),
            "reasoning": "Standard setup, implementation and release cadence",
        },
        "developerSprintPlan": _sprint_track("dev", assisted=False),
        "aiSprintPlan": _sprint_track("ai", assisted=True),
    }


def _scale(cost: str, service: str, tier: str, description: str, reasoning: str) -> dict[str, Any]:
    return {
        "cost": cost,
        "breakdown": [{"service": service, "tier": tier, "cost": cost, "description": description}],
        "reasoning": reasoning,
    }


_COST_ESTIMATION: dict[str, Any] = {
    "overview": {
        "summary": "Basic infrastructure costs for a web application",
        "totalCostSmallScale": "₹5,000/month for up to 100 users",
        "totalCostMediumScale": "₹25,000/month for up to 5,000 users",
        "totalCostLargeScale": "₹100,000/month for 10,000+ users",
        "majorCostDrivers": ["Compute resources", "Database services"],
    },
    "costCategories": [
        {
            "name": "Compute & Hosting",
            "description": "Web servers and application hosting",
            "smallScale": _scale(
                "₹2,000/month", "Basic cloud VM", "Shared CPU, 2GB RAM",
                "Basic server for development and testing", "Minimal resources for early development",
            ),
            "mediumScale": _scale(
                "₹10,000/month", "Standard cloud VMs", "2vCPU, 4GB RAM",
                "Multiple servers with load balancing", "Increased resources for higher traffic",
            ),
            "largeScale": _scale(
                "₹40,000/month", "High-performance cloud VMs", "4vCPU, 8GB RAM",
                "Multiple servers with auto-scaling", "Scaled resources for high traffic",
            ),
        },
        {
            "name": "Database",
            "description": "Database services",
            "smallScale": _scale(
                "₹1,500/month", "Managed database service", "Basic tier",
                "Shared database resources", "Basic database for early development",
            ),
            "mediumScale": _scale(
                "₹8,000/month", "Managed database service", "Standard tier",
                "Dedicated database with backup", "Dedicated resources for higher load",
            ),
            "largeScale": _scale(
                "₹35,000/month", "Managed database service", "Premium tier",
                "High-performance database with replication", "Highly available database for scale",
            ),
        },
        {
            "name": "Monitoring & DevOps",
            "description": "Monitoring, logging, and deployment tools",
            "smallScale": _scale(
                "₹1,000/month", "Log management", "Basic tier",
                "Basic log collection and storage", "Minimal monitoring setup",
            ),
            "mediumScale": _scale(
                "₹3,500/month", "Advanced monitoring", "Standard tier",
                "Comprehensive monitoring with dashboards", "Improved visibility and alerting",
            ),
            "largeScale": _scale(
                "₹12,000/month", "Enterprise monitoring solution", "Premium tier",
                "Full-stack monitoring with advanced analytics", "Enterprise-grade observability",
            ),
        },
    ],
    "optimizationStrategies": [
        {
            "name": "Reserved Instances",
            "description": "Pre-purchase compute resources for 1-3 year terms",
            "potentialSavings": "Up to 30% on compute costs",
            "tradeoffs": "Requires upfront commitment",
            "applicableScales": ["medium", "large"],
        },
        {
            "name": "Auto-scaling",
            "description": "Scale resources with demand instead of provisioning for peak load",
            "potentialSavings": "20-40% on compute during off-peak hours",
            "tradeoffs": "Requires load testing and tuned scaling policies",
            "applicableScales": ["medium", "large"],
        },
    ],
    "environmentCosts": {
        "development": "₹1,000/month",
        "staging": "₹2,000/month",
        "production": "Scales with usage, see cost categories",
    },
    "assumptions": ["Cloud-hosted deployment", "Costs are monthly estimates in INR"],
    "recommendations": ["Start with managed services and revisit at the medium scale"],
}


_DOCUMENTATION: dict[str, Any] = {
    "documentation": {
        "projectOverview": {
            "title": "Project Title",
            "description": "Project Description",
            "businessObjectives": ["Fulfill project business goals"],
            "targetAudience": ["Primary target users"],
            "keyFeatures": [],
        },
        "technicalArchitecture": {
            "overview": "System architecture overview",
            "architecturalPatterns": ["Primary architectural patterns"],
            "components": [],
            "dataFlows": [],
            "deploymentArchitecture": {
                "description": "Deployment architecture overview",
                "environments": ["Development", "Staging", "Production"],
                "scalingStrategy": "Scaling approach overview",
            },
            "securityArchitecture": {
                "authenticationMechanism": "Authentication approach",
                "authorizationModel": "Authorization model overview",
                "dataProtection": "Data protection strategy",
            },
        },
        "developerGuide": {
            "gettingStarted": {
                "requirementsAndPrerequisites": "Requirements and prerequisites",
                "environmentSetup": "Environment setup instructions",
                "buildAndRunInstructions": "Build and run instructions",
            },
            "codeStructure": {"overview": "Code structure overview", "keyDirectories": []},
            "apis": [],
            "troubleshooting": {"commonIssues": [], "debugging": "Debugging approach", "logging": "Logging strategy"},
        },
        "userGuide": {
            "gettingStarted": {
                "installation": "Installation instructions",
                "registration": "Registration process",
                "login": "Login process",
                "overview": "System overview for users",
            },
            "features": [],
            "troubleshooting": {"commonIssues": [], "contactSupport": "How to contact support"},
        },
        "operationsGuide": {
            "deployment": {
                "requirements": "Deployment requirements",
                "procedure": "Deployment procedure",
                "verification": "Deployment verification",
                "rollback": "Rollback procedure",
            },
            "monitoring": {"metrics": [], "alerting": "Alerting strategy", "dashboards": "Monitoring dashboards"},
            "backup": {"dataBackup": "Data backup strategy", "recovery": "Recovery procedures"},
        },
        "apiReference": {
            "overview": "API overview",
            "authentication": "API authentication",
            "errorHandling": "API error handling",
            "endpoints": [],
        },
    }
}


def synthesize_fallback(kind: SchemaKind | str) -> dict[str, Any]:
    """Return the placeholder object for *kind*; pure and deterministic."""
    kind = SchemaKind(kind)
    if kind is SchemaKind.PROJECT_STRUCTURE:
        return copy.deepcopy(_PROJECT_STRUCTURE)
    if kind is SchemaKind.SPRINT_PLAN:
        return _sprint_plan()
    if kind is SchemaKind.COST_ESTIMATION:
        return copy.deepcopy(_COST_ESTIMATION)
    return copy.deepcopy(_DOCUMENTATION)
