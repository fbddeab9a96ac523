import os

from dotenv import load_dotenv, find_dotenv

# load .env
load_dotenv(find_dotenv(), override=False)

# overridable via env vars if you like
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or ""
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-lite")
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.1"))
LLM_MAX_OUTPUT_TOKENS = int(os.getenv("LLM_MAX_OUTPUT_TOKENS", "700"))

SNAPSHOT_JSON = os.getenv("SNAPSHOT_JSON", "./outputs/data/form_snapshot.json")
PROFILE_JSON = os.getenv("PROFILE_JSON", "./data/profile.json")
RESUME_FILE = os.getenv("RESUME_FILE", "./data/resume.txt")
PLAN_OUT = os.getenv("PLAN_OUT", "./outputs/data/action_plan.json")

# planner tunables
SIMILARITY_THRESHOLD = 0.85
MIN_CONTAINMENT_LENGTH = 3
RULE_CONFIDENCE = 0.62
RULE_CONFIDENCE_SPREAD = 0.08
NAVIGATION_CONFIDENCE = 0.58
PRE_RESOLVED_CONFIDENCE = 0.85
GENERATED_CONFIDENCE = 0.75
DEFAULT_LLM_CONFIDENCE = 0.6
MAX_RESUME_HIGHLIGHTS = 5
MAX_PROMPT_OPTIONS = 25

# profile key -> hint phrases; first hit wins, so specific hints go first
PROFILE_HINTS = [
    ("first_name",         ["first name", "given name", "forename", "fname"]),
    ("last_name",          ["last name", "surname", "family name", "lname"]),
    ("full_name",          ["full name", "legal name", "your name", "name"]),
    ("email",              ["email", "e-mail", "email address"]),
    ("phone",              ["phone", "mobile", "telephone", "cell"]),
    ("city",               ["city", "town"]),
    ("state",              ["state", "province", "region"]),
    ("country",            ["country", "nation"]),
    ("zip_code",           ["zip", "zipcode", "zip code", "postal", "postcode", "postal code"]),
    ("street_address",     ["street address", "street", "address line", "address 1", "address1"]),
    ("linkedin",           ["linkedin", "linkedin url", "linkedin profile"]),
    ("github",             ["github", "github url", "github profile"]),
    ("portfolio",          ["portfolio", "website", "personal site", "personal website"]),
    ("current_title",      ["current title", "job title", "current role", "position", "title"]),
    ("years_experience",   ["years of experience", "years experience", "experience", "years"]),
    ("needs_sponsorship",  ["sponsorship", "sponsor"]),
    ("work_authorization", ["work authorization", "authorized to work", "legally authorized", "authorized", "visa"]),
    ("summary",            ["summary", "about you"]),
]

LOCATION_HINTS = ["location", "address"]

# canonical form first; every member aliases to the group
OPTION_ALIASES = [
    ["united states", "us", "usa", "u.s.", "u.s.a.", "united states of america", "america"],
    ["united kingdom", "uk", "u.k.", "gb", "great britain", "britain", "england"],
    ["united arab emirates", "uae", "u.a.e.", "emirates"],
    ["canada", "can"],
    ["india", "ind", "bharat"],
    ["germany", "de", "deu", "deutschland"],
    ["netherlands", "nl", "holland", "the netherlands"],
    ["south korea", "korea", "republic of korea", "kr"],
    ["australia", "au", "aus"],
    ["yes", "y", "true"],
    ["no", "n", "false"],
]
