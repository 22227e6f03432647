"""
Language tables for the rath frontend.

Token kinds, the keyword and operator sets recognized by the lexer, the
operator precedence and associativity tables used by the parser, the
variable flag bits carried by declarations and parameters, and the default
nesting limits.
"""

# Token kinds
EOF = "EOF"
IDENT = "IDENT"
STRING = "STRING"
NUMBER = "NUMBER"
KEYWORD = "KEYWORD"
OPERATOR = "OPERATOR"
LPAREN = "LPAREN"
RPAREN = "RPAREN"
LCURLY = "LCURLY"
RCURLY = "RCURLY"
LBRACKET = "LBRACKET"
RBRACKET = "RBRACKET"
COMMA = "COMMA"
ARROW = "ARROW"
SEMICOLON = "SEMICOLON"
NEWLINE = "NEWLINE"

punctuation_tokens: dict[str, str] = {
    "(": LPAREN,
    ")": RPAREN,
    "{": LCURLY,
    "}": RCURLY,
    "[": LBRACKET,
    "]": RBRACKET,
    ",": COMMA,
    ";": SEMICOLON,
}

# Keywords
KW_SWITCH = "switch"
KW_CASE = "case"
KW_WHEN = "when"
KW_IF = "if"
KW_ELSE = "else"
KW_THEN = "then"
KW_LET = "let"
KW_OPEN = "open"
KW_REF = "ref"
KW_CONST = "const"
KW_RETURN = "return"
KW_FUNC = "func"
KW_NULL = "null"
KW_THIS = "this"

keywords: frozenset[str] = frozenset(
    {
        KW_SWITCH,
        KW_CASE,
        KW_WHEN,
        KW_IF,
        KW_ELSE,
        KW_THEN,
        KW_LET,
        KW_OPEN,
        KW_REF,
        KW_CONST,
        KW_RETURN,
        KW_FUNC,
        KW_NULL,
        KW_THIS,
    }
)

# Operators
OPERATOR_CHARS = "+-*/%.:=<>|&^!"
ARROW_TEXT = "->"
VARARGS = "..."

valid_operators: frozenset[str] = frozenset(
    {
        # assignment / access
        ".",
        "=",
        ":=",
        VARARGS,
        # arithmetic
        "+",
        "-",
        "*",
        "/",
        "%",
        # bitwise
        "<<",
        ">>",
        "&",
        "^",
        "|",
        # comparison / logical
        ">",
        "<",
        ">=",
        "<=",
        "==",
        "!=",
        "&&",
        "||",
    }
)

unary_operators: frozenset[str] = frozenset({"-", "&"})

right_assoc_operators: frozenset[str] = frozenset({"=", ":="})

operator_precedence: dict[str, int] = {
    "=": 0,
    ":=": 0,
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6,
    "!=": 6,
    ">": 7,
    "<": 7,
    ">=": 7,
    "<=": 7,
    "<<": 8,
    ">>": 8,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "%": 10,
    ".": 11,
}

# Constant folding operator classes
arithmetic_operators: frozenset[str] = frozenset({"+", "-", "*", "/"})
integer_operators: frozenset[str] = frozenset({"&", "^", "|", "%", ">>", "<<"})

# Constant types
CONST_INT = "int"
CONST_FLOAT = "float"
CONST_STRING = "string"
CONST_IDENT = "ident"
CONST_NULL = "null"
CONST_THIS = "this"

# Variable flags
FLAG_REF = 1
FLAG_CONST = 2
FLAG_PACKED = 4

# Limits
DEFAULT_MAX_DEPTH = 200
DEFAULT_FOLD_DEPTH = 256

# Widest shift a folded constant may use
MAX_SHIFT_COUNT = 63

DEFAULT_FILENAME = "<input>"
