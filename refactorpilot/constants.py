"""
Constants and default configuration for refactorpilot.
"""

CONFIG_FILES = [
    '.refactorpilot.yaml',
    '.refactorpilot.yml',
    '.refactorpilot.toml',
    '.refactorpilot.json',
]

STATE_DIR = '.refactorpilot'
CACHE_FILE = f'{STATE_DIR}/cache.json'
CANDIDATES_FILE = f'{STATE_DIR}/REFACTOR-CANDIDATES.md'
STATE_FILE = f'{STATE_DIR}/state.json'

# Tier thresholds, inclusive lower bounds
HIGH_IMPACT_THRESHOLD = 80
MEDIUM_IMPACT_THRESHOLD = 50

# AST thresholds that turn a function into an opportunity
COMPLEXITY_THRESHOLD = 10
LENGTH_THRESHOLD = 50

# Auto mode only applies items scoring at least this much
AUTO_APPLY_THRESHOLD = HIGH_IMPACT_THRESHOLD

DEFAULT_EXTENSIONS = ['.py', '.js', '.jsx', '.ts', '.tsx', '.mjs', '.cjs']

DEFAULT_EXCLUDES = [
    '.git',
    '__pycache__',
    'node_modules',
    '.venv',
    'venv',
    'build',
    'dist',
    '.tox',
    '.mypy_cache',
    '.pytest_cache',
    STATE_DIR,
]

DEFAULT_CONFIG = {
    'detection': {
        'min_lines': 5,
        'max_block_lines': 50,
        'min_block_chars': 20,
        'similarity_threshold': 0.8,
        'ignore_imports': True,
        'maximal_blocks_only': True,
    },
    'analysis': {
        'complexity_threshold': COMPLEXITY_THRESHOLD,
        'length_threshold': LENGTH_THRESHOLD,
        'cache_file': CACHE_FILE,
        'extensions': DEFAULT_EXTENSIONS,
        'exclude': DEFAULT_EXCLUDES,
        'models': ['default'],
    },
    'execution': {
        'test_command': 'pytest -q',
        'test_timeout': 900,
        'max_autofix_attempts': 3,
    },
    'backlog': {
        'path': CANDIDATES_FILE,
    },
    'logging': {
        'level': 'INFO',
    },
}
