"""
CosmoStart: Cosmos DB Getting-Started Walkthrough

A guided walkthrough of provisioning and document operations against Azure
Cosmos DB, with an in-memory backend for offline runs and tests.
"""

__version__ = "0.1.0"
__author__ = "CosmoStart Contributors"

from .workflow import GettingStartedWorkflow, WorkflowReport, run_workflow

__all__ = ["GettingStartedWorkflow", "WorkflowReport", "run_workflow", "__version__"]
