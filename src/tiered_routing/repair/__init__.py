"""
Structured output repair strategies.
"""

from .output_repair import (
    DuplicateGroupRepair,
    FolderPlanRepair,
    RenameRepair,
    RepairContext,
    RepairStrategy,
    default_folder_plan,
    group_similar_names,
    repair,
)

__all__ = [
    "DuplicateGroupRepair",
    "FolderPlanRepair",
    "RenameRepair",
    "RepairContext",
    "RepairStrategy",
    "default_folder_plan",
    "group_similar_names",
    "repair",
]
