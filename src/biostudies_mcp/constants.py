"""Project-wide constants."""

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 30.0
TIMEOUT_STATUS: int = 408
TRANSPORT_ERROR_STATUS: int = 0
INVALID_REQUEST_STATUS: int = 400

# -- BioStudies -------------------------------------------------------------
BIOSTUDIES_BASE_URL: str = "https://www.ebi.ac.uk/biostudies/api/v1"
BIOSTUDIES_WEBSITE: str = "https://www.ebi.ac.uk/biostudies/"
BIOSTUDIES_STUDY_PAGE: str = "https://www.ebi.ac.uk/biostudies/studies/{accno}"
ARRAYEXPRESS_WEBSITE: str = "https://www.ebi.ac.uk/arrayexpress/"

# -- Paging / batch limits --------------------------------------------------
DEFAULT_PAGE: int = 0
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100
MAX_BATCH_SIZE: int = 50

# -- Rendering budgets ------------------------------------------------------
MAX_RENDERED_FILES: int = 10
MAX_RENDERED_SUBSECTIONS: int = 5
SEARCH_AUTHOR_LIMIT: int = 3
COLLECTION_AUTHOR_LIMIT: int = 2
SIZE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")

# -- Accession families -----------------------------------------------------
# Full-string, case-insensitive. Order matters only for family reporting.
ACCESSION_PATTERNS: dict[str, str] = {
    "BioStudies": r"S-BSST\d+",
    "ArrayExpress": r"E-\w{4}-\d+",
    "EMPIAR": r"EMPIAR-\d+",
    "BioImages": r"S-BIAD\d+",
    "BioSamples": r"S-BSMS\d+",
    "Project": r"PRJ[EDN][A-Z]\d+",
}

# Shown to callers when an accession fails format validation.
ACCESSION_FORMAT_HINTS: list[str] = [
    "S-BSST#### (BioStudies)",
    "E-MTAB-#### (ArrayExpress)",
    "EMPIAR-#### (EMPIAR)",
    "S-BIAD#### (BioImages)",
]

# -- Fallback content -------------------------------------------------------
MAX_COLLECTION_SUGGESTIONS: int = 5

COLLECTION_SUGGESTIONS: dict[str, list[str]] = {
    "arrayexpress": [
        "E-MTAB-7249",
        "E-MTAB-6819",
        "E-MTAB-5061",
        "E-MTAB-4748",
        "E-MTAB-4421",
    ],
    "bioimages": ["S-BIAD423", "S-BIAD424", "S-BIAD425", "S-BIAD426", "S-BIAD427"],
    "empiar": [
        "EMPIAR-10001",
        "EMPIAR-10002",
        "EMPIAR-10003",
        "EMPIAR-10004",
        "EMPIAR-10005",
    ],
    "biostudies": ["S-BSST1", "S-BSST2", "S-BSST3", "S-BSST4", "S-BSST5"],
}

KNOWN_COLLECTIONS: list[dict[str, str | list[str]]] = [
    {
        "key": "arrayexpress",
        "name": "ArrayExpress",
        "description": "Functional genomics experiments including gene expression data",
        "accession_pattern": "E-MTAB-####, E-GEOD-####, E-MEXP-####",
        "website": "https://www.ebi.ac.uk/arrayexpress/",
        "examples": ["E-MTAB-7249", "E-MTAB-6819", "E-MTAB-5061"],
        "guidance": "Focus on gene expression and functional genomics",
    },
    {
        "key": "bioimages",
        "name": "BioImages",
        "description": "Biological imaging data from light and electron microscopy",
        "accession_pattern": "S-BIAD####",
        "website": "https://www.ebi.ac.uk/biostudies/bioimages/",
        "examples": ["S-BIAD423", "S-BIAD424", "S-BIAD425"],
        "guidance": "Look for microscopy and imaging studies",
    },
    {
        "key": "empiar",
        "name": "EMPIAR",
        "description": "Electron Microscopy Public Image Archive",
        "accession_pattern": "EMPIAR-#####",
        "website": "https://www.ebi.ac.uk/empiar/",
        "examples": ["EMPIAR-10001", "EMPIAR-10002", "EMPIAR-10003"],
        "guidance": "Specialized for electron microscopy data",
    },
    {
        "key": "biostudies",
        "name": "BioStudies General",
        "description": "General biological studies and multi-omics data",
        "accession_pattern": "S-BSST####",
        "website": "https://www.ebi.ac.uk/biostudies/",
        "examples": ["S-BSST1", "S-BSST2", "S-BSST3"],
        "guidance": "Multi-omics and general biological studies",
    },
]

# -- Tool profiles ----------------------------------------------------------
MINIMAL_TOOLS: frozenset[str] = frozenset(
    {"get_study_details", "validate_study_accession", "batch_get_studies"}
)
