"""
Cosmos DB SQL subset for the in-memory store.

Tokenizes, parses and evaluates the part of the Cosmos DB SQL grammar the
in-memory backend supports:

    query      = SELECT [TOP n] select_list FROM source [WHERE expr]
                 [ORDER BY path [ASC|DESC] {"," path [ASC|DESC]}]
    select_list = "*" | projection {"," projection}
    projection = path [AS identifier]
    source     = identifier [[AS] identifier]
    expr       = and_expr {OR and_expr}
    and_expr   = not_expr {AND not_expr}
    not_expr   = NOT not_expr | predicate
    predicate  = operand [comp_op operand
                         | [NOT] IN "(" operand {"," operand} ")"
                         | BETWEEN operand AND operand]
    operand    = literal | @parameter | path | "(" expr ")"
    path       = identifier {"." identifier | "[" (integer | string) "]"}

Comparisons between values of different types, or against a missing
property, are undefined. As in Cosmos DB, NOT of undefined stays undefined,
AND and OR follow three-valued logic, and only a true filter selects a
document.

Example:
    >>> query = parse_query("SELECT * FROM c WHERE c.LastName = @name")
    >>> evaluate_query(query, documents, {"@name": "Andersen"})

Author: CosmoStart Contributors
Date: 2026-10-17
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple


class TokenType(Enum):
    """SQL token types."""

    KEYWORD = auto()
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()
    PARAMETER = auto()
    OPERATOR = auto()
    PUNCT = auto()
    EOF = auto()


KEYWORDS = {
    "SELECT", "TOP", "FROM", "WHERE", "ORDER", "BY", "ASC", "DESC",
    "AND", "OR", "NOT", "IN", "BETWEEN", "AS", "TRUE", "FALSE", "NULL",
}

COMPARISON_OPERATORS = {"=", "!=", "<>", "<", "<=", ">", ">="}


@dataclass(frozen=True)
class Token:
    """Lexical token with its offset in the query text."""
    type: TokenType
    value: Any
    offset: int


class QuerySyntaxError(Exception):
    """Raised when a query cannot be tokenized, parsed or bound."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.message = message
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)


def tokenize(text: str) -> List[Token]:
    """
    Split query text into tokens.

    Args:
        text: SQL query text

    Returns:
        Token list terminated by an EOF token

    Raises:
        QuerySyntaxError: On unterminated strings or unexpected characters
    """
    tokens: List[Token] = []
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]

        if ch.isspace():
            i += 1
            continue

        if ch in ("'", '"'):
            start = i
            i += 1
            chars = []
            while i < length and text[i] != ch:
                if text[i] == "\\" and i + 1 < length:
                    i += 1
                chars.append(text[i])
                i += 1
            if i >= length:
                raise QuerySyntaxError("Unterminated string literal", start)
            i += 1
            tokens.append(Token(TokenType.STRING, "".join(chars), start))
            continue

        if ch.isdigit() or (ch == "-" and i + 1 < length and text[i + 1].isdigit()):
            start = i
            i += 1
            while i < length and (text[i].isdigit() or text[i] in ".eE"):
                i += 1
            raw = text[start:i]
            try:
                value: Any = float(raw) if any(c in raw for c in ".eE") else int(raw)
            except ValueError:
                raise QuerySyntaxError(f"Invalid number '{raw}'", start)
            tokens.append(Token(TokenType.NUMBER, value, start))
            continue

        if ch == "@":
            start = i
            i += 1
            while i < length and (text[i].isalnum() or text[i] == "_"):
                i += 1
            if i == start + 1:
                raise QuerySyntaxError("Empty parameter name", start)
            tokens.append(Token(TokenType.PARAMETER, text[start:i], start))
            continue

        if ch.isalpha() or ch == "_":
            start = i
            while i < length and (text[i].isalnum() or text[i] == "_"):
                i += 1
            word = text[start:i]
            if word.upper() in KEYWORDS:
                tokens.append(Token(TokenType.KEYWORD, word.upper(), start))
            else:
                tokens.append(Token(TokenType.IDENTIFIER, word, start))
            continue

        two = text[i:i + 2]
        if two in ("!=", "<>", "<=", ">="):
            tokens.append(Token(TokenType.OPERATOR, two, i))
            i += 2
            continue
        if ch in "=<>":
            tokens.append(Token(TokenType.OPERATOR, ch, i))
            i += 1
            continue
        if ch in "*,.()[]":
            tokens.append(Token(TokenType.PUNCT, ch, i))
            i += 1
            continue

        raise QuerySyntaxError(f"Unexpected character '{ch}'", i)

    tokens.append(Token(TokenType.EOF, None, length))
    return tokens


# ========== AST ==========

@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Parameter:
    name: str


@dataclass(frozen=True)
class Path:
    """Property path relative to the document root."""
    segments: Tuple[Any, ...]


@dataclass(frozen=True)
class Comparison:
    operator: str
    left: Any
    right: Any


@dataclass(frozen=True)
class InList:
    operand: Any
    values: Tuple[Any, ...]
    negated: bool = False


@dataclass(frozen=True)
class Between:
    operand: Any
    low: Any
    high: Any


@dataclass(frozen=True)
class Logical:
    operator: str  # "AND" or "OR"
    left: Any
    right: Any


@dataclass(frozen=True)
class Not:
    operand: Any


@dataclass(frozen=True)
class Projection:
    path: Path
    alias: str


@dataclass
class SelectQuery:
    """
    Parsed SELECT statement.

    Attributes:
        projections: Selected paths, empty for ``SELECT *``
        source_alias: Alias the query uses for the document root
        where: Filter expression, None if absent
        order_by: (path, descending) pairs
        top: Row limit, None if absent
    """
    projections: List[Projection] = field(default_factory=list)
    source_alias: str = "c"
    where: Any = None
    order_by: List[Tuple[Path, bool]] = field(default_factory=list)
    top: Optional[int] = None


class QueryParser:
    """Recursive descent parser over a token list."""

    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._pos = 0
        self._alias = "c"
        self._raw_paths: List[Tuple[Tuple[str, ...], int]] = []

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        if token.type != TokenType.EOF:
            self._pos += 1
        return token

    def _check(self, token_type: TokenType, value: Any = None) -> bool:
        token = self._peek()
        return token.type == token_type and (value is None or token.value == value)

    def _accept(self, token_type: TokenType, value: Any = None) -> Optional[Token]:
        if self._check(token_type, value):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, value: Any = None) -> Token:
        token = self._accept(token_type, value)
        if token is None:
            found = self._peek()
            wanted = value if value is not None else token_type.name
            got = found.value if found.type != TokenType.EOF else "end of query"
            raise QuerySyntaxError(f"Expected {wanted}, found {got!r}", found.offset)
        return token

    def parse(self) -> SelectQuery:
        query = SelectQuery()
        self._expect(TokenType.KEYWORD, "SELECT")

        if self._accept(TokenType.KEYWORD, "TOP"):
            top = self._expect(TokenType.NUMBER)
            if not isinstance(top.value, int) or top.value < 0:
                raise QuerySyntaxError("TOP requires a non-negative integer", top.offset)
            query.top = top.value

        raw_projections = []
        if not self._accept(TokenType.PUNCT, "*"):
            while True:
                path_token = self._peek()
                segments = self._path_segments()
                alias = None
                if self._accept(TokenType.KEYWORD, "AS"):
                    alias = self._expect(TokenType.IDENTIFIER).value
                raw_projections.append((segments, alias, path_token.offset))
                if not self._accept(TokenType.PUNCT, ","):
                    break

        self._expect(TokenType.KEYWORD, "FROM")
        source = self._expect(TokenType.IDENTIFIER).value
        self._accept(TokenType.KEYWORD, "AS")
        alias_token = self._accept(TokenType.IDENTIFIER)
        self._alias = alias_token.value if alias_token else source
        query.source_alias = self._alias

        for segments, alias, offset in raw_projections:
            path = self._bind(segments, offset)
            if not path.segments:
                raise QuerySyntaxError("Projection must name a property", offset)
            name = alias or str(path.segments[-1])
            query.projections.append(Projection(path=path, alias=name))

        if self._accept(TokenType.KEYWORD, "WHERE"):
            query.where = self._or_expression()

        if self._accept(TokenType.KEYWORD, "ORDER"):
            self._expect(TokenType.KEYWORD, "BY")
            while True:
                offset = self._peek().offset
                path = self._bind(self._path_segments(), offset)
                descending = False
                if self._accept(TokenType.KEYWORD, "DESC"):
                    descending = True
                else:
                    self._accept(TokenType.KEYWORD, "ASC")
                query.order_by.append((path, descending))
                if not self._accept(TokenType.PUNCT, ","):
                    break

        if not self._check(TokenType.EOF):
            token = self._peek()
            raise QuerySyntaxError(f"Unexpected token {token.value!r}", token.offset)

        return query

    def _path_segments(self) -> Tuple[Any, ...]:
        segments: List[Any] = [self._expect(TokenType.IDENTIFIER).value]
        while True:
            if self._accept(TokenType.PUNCT, "."):
                segments.append(self._expect(TokenType.IDENTIFIER).value)
            elif self._accept(TokenType.PUNCT, "["):
                token = self._advance()
                if token.type not in (TokenType.NUMBER, TokenType.STRING):
                    raise QuerySyntaxError("Expected index or property name", token.offset)
                segments.append(token.value)
                self._expect(TokenType.PUNCT, "]")
            else:
                return tuple(segments)

    def _bind(self, segments: Tuple[Any, ...], offset: int) -> Path:
        if segments[0] != self._alias:
            raise QuerySyntaxError(
                f"Identifier '{segments[0]}' could not be resolved; expected '{self._alias}'",
                offset
            )
        return Path(segments=segments[1:])

    def _or_expression(self) -> Any:
        node = self._and_expression()
        while self._accept(TokenType.KEYWORD, "OR"):
            node = Logical("OR", node, self._and_expression())
        return node

    def _and_expression(self) -> Any:
        node = self._not_expression()
        while self._accept(TokenType.KEYWORD, "AND"):
            node = Logical("AND", node, self._not_expression())
        return node

    def _not_expression(self) -> Any:
        if self._accept(TokenType.KEYWORD, "NOT"):
            return Not(self._not_expression())
        return self._predicate()

    def _predicate(self) -> Any:
        left = self._operand()

        token = self._peek()
        if token.type == TokenType.OPERATOR and token.value in COMPARISON_OPERATORS:
            self._advance()
            operator = "!=" if token.value == "<>" else token.value
            return Comparison(operator, left, self._operand())

        negated = False
        if self._check(TokenType.KEYWORD, "NOT") and self._tokens[self._pos + 1].value == "IN":
            self._advance()
            negated = True
        if self._accept(TokenType.KEYWORD, "IN"):
            self._expect(TokenType.PUNCT, "(")
            values = [self._operand()]
            while self._accept(TokenType.PUNCT, ","):
                values.append(self._operand())
            self._expect(TokenType.PUNCT, ")")
            return InList(left, tuple(values), negated)

        if self._accept(TokenType.KEYWORD, "BETWEEN"):
            low = self._operand()
            self._expect(TokenType.KEYWORD, "AND")
            return Between(left, low, self._operand())

        return left

    def _operand(self) -> Any:
        token = self._peek()
        if token.type == TokenType.STRING or token.type == TokenType.NUMBER:
            self._advance()
            return Literal(token.value)
        if token.type == TokenType.PARAMETER:
            self._advance()
            return Parameter(token.value)
        if token.type == TokenType.KEYWORD and token.value in ("TRUE", "FALSE", "NULL"):
            self._advance()
            return Literal({"TRUE": True, "FALSE": False, "NULL": None}[token.value])
        if token.type == TokenType.IDENTIFIER:
            return self._bind(self._path_segments(), token.offset)
        if self._accept(TokenType.PUNCT, "("):
            node = self._or_expression()
            self._expect(TokenType.PUNCT, ")")
            return node
        got = token.value if token.type != TokenType.EOF else "end of query"
        raise QuerySyntaxError(f"Expected a value, found {got!r}", token.offset)


def parse_query(text: str) -> SelectQuery:
    """Parse SQL query text into a ``SelectQuery``."""
    return QueryParser(tokenize(text)).parse()


# ========== Evaluation ==========

_UNDEFINED = object()


def _resolve(document: Any, path: Path) -> Any:
    value = document
    for segment in path.segments:
        if isinstance(segment, int) and isinstance(value, list):
            if 0 <= segment < len(value):
                value = value[segment]
                continue
            return _UNDEFINED
        if isinstance(value, dict) and str(segment) in value:
            value = value[str(segment)]
            continue
        return _UNDEFINED
    return value


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, str):
        return 3
    if isinstance(value, list):
        return 4
    return 5


def _compare(operator: str, left: Any, right: Any) -> Any:
    """Compare two values; returns True, False or _UNDEFINED."""
    if left is _UNDEFINED or right is _UNDEFINED:
        return _UNDEFINED
    if _type_rank(left) != _type_rank(right):
        return _UNDEFINED
    if operator == "=":
        return left == right
    if operator in ("!=", "<>"):
        return left != right
    if _type_rank(left) not in (2, 3):
        return _UNDEFINED
    if operator == "<":
        return left < right
    if operator == "<=":
        return left <= right
    if operator == ">":
        return left > right
    if operator == ">=":
        return left >= right
    return _UNDEFINED


def _and(left: Any, right: Any) -> Any:
    if left is False or right is False:
        return False
    if left is True and right is True:
        return True
    return _UNDEFINED


def _or(left: Any, right: Any) -> Any:
    if left is True or right is True:
        return True
    if left is False and right is False:
        return False
    return _UNDEFINED


def _not(operand: Any) -> Any:
    if operand is _UNDEFINED:
        return _UNDEFINED
    return not operand


class QueryEvaluator:
    """
    Evaluates a parsed query against in-memory documents.

    Args:
        parameters: Mapping of ``@name`` to value
    """

    def __init__(self, parameters: Optional[Dict[str, Any]] = None):
        self._parameters = parameters or {}

    def value(self, node: Any, document: Dict[str, Any]) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Parameter):
            if node.name not in self._parameters:
                raise QuerySyntaxError(f"Parameter '{node.name}' was not supplied")
            return self._parameters[node.name]
        if isinstance(node, Path):
            return _resolve(document, node)
        return self.condition(node, document)

    def condition(self, node: Any, document: Dict[str, Any]) -> Any:
        """
        Evaluate a filter expression with three-valued logic.

        Returns:
            True, False, or ``_UNDEFINED`` when the result depends on a
            missing property or a comparison between different types
        """
        if isinstance(node, Logical):
            left = self.condition(node.left, document)
            right = self.condition(node.right, document)
            return _and(left, right) if node.operator == "AND" else _or(left, right)
        if isinstance(node, Not):
            return _not(self.condition(node.operand, document))
        if isinstance(node, Comparison):
            return _compare(
                node.operator,
                self.value(node.left, document),
                self.value(node.right, document)
            )
        if isinstance(node, InList):
            operand = self.value(node.operand, document)
            found: Any = False
            for candidate in node.values:
                found = _or(found, _compare("=", operand, self.value(candidate, document)))
            return _not(found) if node.negated else found
        if isinstance(node, Between):
            operand = self.value(node.operand, document)
            return _and(
                _compare(">=", operand, self.value(node.low, document)),
                _compare("<=", operand, self.value(node.high, document))
            )
        result = self.value(node, document)
        return result if isinstance(result, bool) else _UNDEFINED

    def matches(self, node: Any, document: Dict[str, Any]) -> bool:
        """True only when the filter is defined and true for ``document``."""
        return self.condition(node, document) is True

    def project(self, query: SelectQuery, document: Dict[str, Any]) -> Dict[str, Any]:
        if not query.projections:
            return document
        projected: Dict[str, Any] = {}
        for projection in query.projections:
            value = _resolve(document, projection.path)
            if value is not _UNDEFINED:
                projected[projection.alias] = value
        return projected


def _sort_key(value: Any) -> Tuple[int, Any]:
    if value is _UNDEFINED:
        return (-1, 0)
    rank = _type_rank(value)
    if rank in (2, 3):
        return (rank, value)
    if rank == 1:
        return (rank, int(value))
    return (rank, 0)


def evaluate_query(
    query: SelectQuery,
    documents: List[Dict[str, Any]],
    parameters: Optional[Dict[str, Any]] = None
) -> List[Dict[str, Any]]:
    """
    Filter, order, limit and project documents.

    Args:
        query: Parsed query
        documents: Candidate documents, in storage order
        parameters: ``@name`` to value mapping

    Returns:
        Matching documents (projected when the query selects paths)

    Raises:
        QuerySyntaxError: If a referenced parameter was not supplied
    """
    evaluator = QueryEvaluator(parameters)

    results = documents
    if query.where is not None:
        results = [doc for doc in documents if evaluator.matches(query.where, doc)]

    for path, descending in reversed(query.order_by):
        results = sorted(
            results,
            key=lambda doc: _sort_key(_resolve(doc, path)),
            reverse=descending
        )

    if query.top is not None:
        results = results[:query.top]

    return [evaluator.project(query, doc) for doc in results]
