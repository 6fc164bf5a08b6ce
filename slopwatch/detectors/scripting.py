"""
Scripting detector: JavaScript/TypeScript behaviour changes.
"""

from ..claims.models import ClaimDomain
from .base import Detector, Signature


class ScriptingDetector(Detector):
    """Verifies claims about error handling, async code, validation, performance and types."""

    name = "scripting"
    domain = ClaimDomain.SCRIPTING

    subcategories = {
        "error_handling": ("error", "exception", "try", "catch", "throw", "robust", "fault"),
        "async": ("async", "await", "promise", "asynchronous", "concurrent", "non-blocking"),
        "validation": ("validat", "null check", "input", "verify", "guard"),
        "performance": ("performance", "optimi", "fast", "cach", "memo", "lazy", "load time", "bundle", "debounce"),
        "types": ("type", "interface", "generic", "typescript"),
    }

    signatures = (
        # Error handling
        Signature("try_catch", r"try\s*\{[\s\S]*?\}\s*catch\b|\bcatch\s*\(\s*\w*\s*\)\s*\{", "error_handling", 0.9,
                  "try/catch blocks"),
        Signature("throw_statements", r"\bthrow\s+(?:new\s+)?[\w.]+", "error_handling", 0.7,
                  "throw statements"),
        Signature("error_objects", r"new\s+\w*Error\s*\(", "error_handling", 0.6,
                  "Error object construction"),
        Signature("promise_catch", r"\.catch\s*\(", "error_handling", 0.7,
                  "Promise rejection handlers"),
        # Async
        Signature("await_expressions", r"\bawait\s+[\w.(\[]", "async", 0.9,
                  "await expressions"),
        Signature("async_functions", r"\basync\s+(?:function\b|\([^)]*\)\s*=>|\w+\s*=>|\w+\s*\()", "async", 0.8,
                  "async functions"),
        Signature("promise_chains", r"\.then\s*\(", "async", 0.7,
                  "Promise chains"),
        Signature("promise_combinators", r"Promise\.(?:all|allSettled|race|any)\s*\(", "async", 0.8,
                  "Promise combinators"),
        # Validation
        Signature("null_checks", r"(?:===|!==|==|!=)\s*(?:null|undefined)\b|\?\.|\?\?", "validation", 0.7,
                  "null/undefined checks"),
        Signature("type_checks", r"typeof\s+[\w.]+\s*(?:===|!==|==|!=)|Array\.isArray\s*\(|Number\.isNaN\s*\(", "validation", 0.8,
                  "Runtime type checks"),
        Signature("guard_clauses", r"if\s*\(\s*!\s*[\w.]+\s*\)\s*(?:\{\s*)?(?:return|throw)", "validation", 0.6,
                  "Guard clauses"),
        # Performance
        Signature("memoization", r"\b(?:useMemo|useCallback|React\.memo|memoize)\s*\(|new\s+(?:Weak)?Map\s*\(", "performance", 0.7,
                  "Memoization and caching"),
        Signature("debounce_throttle", r"\b(?:debounce|throttle)\s*\(", "performance", 0.6,
                  "Debouncing and throttling"),
        Signature("lazy_loading", r"\blazy\s*\(|<Suspense\b|\bimport\s*\(", "performance", 0.8,
                  "Lazy loading"),
        # Types
        Signature("interfaces", r"\binterface\s+\w+", "types", 0.9,
                  "TypeScript interfaces"),
        Signature("type_annotations", r"\w\s*:\s*(?:string|number|boolean|unknown|any|void|never|\w+\[\])\s*[=;,)]", "types", 0.8,
                  "Type annotations"),
        Signature("generic_types", r"<[A-Z]\w*(?:\s*,\s*[A-Z]\w*)*>", "types", 0.7,
                  "Generic type parameters"),
        Signature("type_aliases", r"\btype\s+[A-Z]\w*\s*=", "types", 0.8,
                  "Type aliases"),
        # Anything function-shaped, used when the claim names no sub-category
        Signature("function_definitions", r"\bfunction\s+\w+\s*\(|\w+\s*=\s*(?:async\s*)?\([^)]*\)\s*=>", "general", 0.7,
                  "Function definitions"),
    )
