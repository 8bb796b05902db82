"""
Our-Lang 前端流水线：源码 -> 记号 -> 语法树 -> 语义分析 -> (success, diagnostics)

用法:
    from ourlang import analyze
    ok, errors = analyze(source)

配置（可选字典）:
    entry_point          - 入口函数名，默认 "main"
    require_entry_point  - 是否要求入口函数存在，默认 True

设置环境变量 OURLANG_DEBUG 后，致命错误会连同堆栈一起写入日志。
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from analyzer import SemanticAnalyzer
from ast_nodes import Program
from errors import Diagnostic, DiagnosticKind, ParseError, SemanticError
from parser import parse

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "entry_point": "main",
    "require_entry_point": True,
}

# 嵌套超出解释器递归上限（深层括号、长串一元运算或右结合赋值）
TOO_DEEP = Diagnostic(DiagnosticKind.INTERNAL_ERROR, "Expression nested too deeply")


@dataclass
class AnalysisResult:
    success: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)
    program: Optional[Program] = None

    @property
    def messages(self) -> List[str]:
        return [str(d) for d in self.diagnostics]


def _fatal(exc: Exception, diagnostic: Diagnostic) -> AnalysisResult:
    if os.environ.get("OURLANG_DEBUG"):
        logger.exception("Analysis aborted: %s", exc)
    else:
        logger.debug("Analysis aborted: %s", exc)
    return AnalysisResult(False, [diagnostic])


def analyze_source(source: str, config: Optional[Dict[str, Any]] = None) -> AnalysisResult:
    """
    跑完整条流水线。
    语法错误或分析中途的致命条件会终止本次运行，只留下一条终止性诊断，不返回部分结果。
    """
    config = {**DEFAULT_CONFIG, **(config or {})}

    try:
        program = parse(source)
    except ParseError as e:
        return _fatal(e, e.to_diagnostic())
    except RecursionError as e:
        return _fatal(e, TOO_DEEP)

    analyzer = SemanticAnalyzer(
        entry_point=config.get("entry_point", "main"),
        require_entry_point=config.get("require_entry_point", True),
    )
    try:
        success = analyzer.analyze(program)
    except SemanticError as e:
        return _fatal(e, e.to_diagnostic())
    except RecursionError as e:
        return _fatal(e, TOO_DEEP)

    logger.debug("Semantic analysis finished with %d diagnostics", len(analyzer.diagnostics))
    return AnalysisResult(success, list(analyzer.diagnostics), program)


def analyze(source: str, config: Optional[Dict[str, Any]] = None) -> Tuple[bool, List[str]]:
    """对外接口：返回 (是否成功, 诊断字符串列表)"""
    result = analyze_source(source, config)
    return result.success, result.messages
