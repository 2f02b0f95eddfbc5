"""
payroll_services -- orchestration over the pure calculators.

Dependency direction (enforced by tests/architecture/test_layer_boundaries.py):
    payroll_services/ -> payroll_engines/, payroll_config/, payroll_kernel/  (allowed)
    payroll_engines/  -> payroll_services/  (FORBIDDEN)
    payroll_kernel/   -> payroll_services/  (FORBIDDEN)
"""

from payroll_services.batch_processor import (
    MISSING_ATTENDANCE_POLICY,
    DeductionBreakdown,
    PayrollBatchProcessor,
    PayrollItem,
    PayrollRunResult,
    Stage,
    default_attendance,
)
from payroll_services.structure_synthesizer import (
    StructureResult,
    StructureSynthesizer,
    SynthesisOptions,
    synthesize,
)

__all__ = [
    "MISSING_ATTENDANCE_POLICY",
    "DeductionBreakdown",
    "PayrollBatchProcessor",
    "PayrollItem",
    "PayrollRunResult",
    "Stage",
    "StructureResult",
    "StructureSynthesizer",
    "SynthesisOptions",
    "default_attendance",
    "synthesize",
]
