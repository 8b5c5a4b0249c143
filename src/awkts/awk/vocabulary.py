"""AWK name tables and the tree-sitter-awk node vocabulary."""

from __future__ import annotations

__all__ = [
    "BRACKETS",
    "BUILTIN_FUNCTIONS",
    "BUILTIN_VARIABLES",
    "CONTROL_STATEMENTS",
    "DELIMITERS",
    "DIRECTIVES",
    "KEYWORDS",
    "NODE_TYPES",
    "OPERATORS",
]

DIRECTIVES: frozenset[str] = frozenset({"@include", "@load", "@namespace"})

KEYWORDS: frozenset[str] = frozenset(
    {
        "BEGIN",
        "END",
        "BEGINFILE",
        "ENDFILE",
        "function",
        "func",
        "if",
        "else",
        "while",
        "do",
        "for",
        "in",
        "break",
        "continue",
        "next",
        "nextfile",
        "exit",
        "return",
        "switch",
        "case",
        "default",
        "delete",
        "getline",
        "print",
        "printf",
    }
    | DIRECTIVES
)

# gawk 5 built-in functions.
BUILTIN_FUNCTIONS: frozenset[str] = frozenset(
    {
        "and",
        "asort",
        "asorti",
        "atan2",
        "bindtextdomain",
        "close",
        "compl",
        "cos",
        "dcgettext",
        "dcngettext",
        "exp",
        "fflush",
        "gensub",
        "gsub",
        "index",
        "int",
        "isarray",
        "length",
        "log",
        "lshift",
        "match",
        "mkbool",
        "mktime",
        "or",
        "patsplit",
        "rand",
        "rshift",
        "sin",
        "split",
        "sprintf",
        "sqrt",
        "srand",
        "strftime",
        "strtonum",
        "sub",
        "substr",
        "system",
        "systime",
        "tolower",
        "toupper",
        "typeof",
        "xor",
    }
)

BUILTIN_VARIABLES: frozenset[str] = frozenset(
    {
        "ARGC",
        "ARGIND",
        "ARGV",
        "BINMODE",
        "CONVFMT",
        "ENVIRON",
        "ERRNO",
        "FIELDWIDTHS",
        "FILENAME",
        "FNR",
        "FPAT",
        "FS",
        "FUNCTAB",
        "IGNORECASE",
        "LINT",
        "NF",
        "NR",
        "OFMT",
        "OFS",
        "ORS",
        "PREC",
        "PROCINFO",
        "RLENGTH",
        "ROUNDMODE",
        "RS",
        "RSTART",
        "RT",
        "SUBSEP",
        "SYMTAB",
        "TEXTDOMAIN",
    }
)

OPERATORS: frozenset[str] = frozenset(
    {
        "=",
        "+=",
        "-=",
        "*=",
        "/=",
        "%=",
        "^=",
        "**=",
        "||",
        "&&",
        "!",
        "==",
        "!=",
        "<",
        "<=",
        ">",
        ">=",
        ">>",
        "~",
        "!~",
        "+",
        "-",
        "*",
        "/",
        "%",
        "^",
        "**",
        "++",
        "--",
        "?",
        ":",
        "|",
        "|&",
        "$",
    }
)

BRACKETS: frozenset[str] = frozenset({"(", ")", "[", "]", "{", "}"})

DELIMITERS: frozenset[str] = frozenset({";", ","})

CONTROL_STATEMENTS: frozenset[str] = frozenset(
    {
        "if_statement",
        "else_clause",
        "while_statement",
        "do_while_statement",
        "for_statement",
        "for_in_statement",
        "switch_statement",
        "switch_body",
        "switch_case",
    }
)

_NAMED_TYPES: frozenset[str] = frozenset(
    {
        "program",
        "rule",
        "pattern",
        "range_pattern",
        "block",
        "comment",
        "string",
        "escape_sequence",
        "regex",
        "regex_pattern",
        "regex_flags",
        "number",
        "identifier",
        "namespace",
        "ns_qualified_name",
        "field_ref",
        "array_ref",
        "grouping",
        "func_def",
        "param_list",
        "func_call",
        "indirect_func_call",
        "args",
        "exp_list",
        "assignment_exp",
        "binary_exp",
        "unary_exp",
        "update_exp",
        "ternary_exp",
        "string_concat",
        "in_exp",
        "getline_input",
        "getline_file",
        "print_statement",
        "printf_statement",
        "redirected_io_statement",
        "piped_io_statement",
        "piped_io_exp",
        "output_redirection",
        "break_statement",
        "continue_statement",
        "next_statement",
        "nextfile_statement",
        "exit_statement",
        "return_statement",
        "delete_statement",
        "directive",
        "ERROR",
    }
    | CONTROL_STATEMENTS
)

NODE_TYPES: frozenset[str] = (
    _NAMED_TYPES | KEYWORDS | OPERATORS | BRACKETS | DELIMITERS
)
