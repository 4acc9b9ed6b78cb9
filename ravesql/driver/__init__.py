from ravesql.driver.dbapi import DBAPICursor, DBAPIExecutor, detect_paramstyle
from ravesql.driver.engine import ExecutionEngine
from ravesql.driver.protocol import Executor

__all__ = ("DBAPICursor", "DBAPIExecutor", "ExecutionEngine", "Executor", "detect_paramstyle")
