"""DocDelta data models.

This module exports the core entities used throughout the engine:
- CodeUnit, UnitMetadata, ChangeSet: Incremental change tracking
- ParsedModule: Structural record from the module parser
- ModuleNode, ExecutionStep, ProjectFlow: Dependency flow
- AnalysisResult, AnalysisError: Run results
- Project: Analyzed source tree
"""

from docdelta.models.analysis import AnalysisError, AnalysisResult, AnalysisStatus
from docdelta.models.flow import (
    ClassInfo,
    DependencyGraph,
    ExecutionStep,
    FunctionInfo,
    ModuleClassification,
    ModuleNode,
    ProjectFlow,
    ProjectStructure,
)
from docdelta.models.repository import Project
from docdelta.models.units import (
    ChangeSet,
    ChangeStatistics,
    CodeUnit,
    ParsedModule,
    UnitMetadata,
)

__all__ = [
    "AnalysisError",
    "AnalysisResult",
    "AnalysisStatus",
    "ChangeSet",
    "ChangeStatistics",
    "ClassInfo",
    "CodeUnit",
    "DependencyGraph",
    "ExecutionStep",
    "FunctionInfo",
    "ModuleClassification",
    "ModuleNode",
    "ParsedModule",
    "Project",
    "ProjectFlow",
    "ProjectStructure",
    "UnitMetadata",
]
