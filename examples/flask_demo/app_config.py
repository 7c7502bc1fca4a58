import os

from dotenv import load_dotenv

from id_token_verification import Validator, ValidatorOptions

load_dotenv()
GLOBAL_CONFIG = {
    "GOOGLE_CLIENT_ID": os.environ.get("GOOGLE_CLIENT_ID"),
    "FLASK_SECRET_KEY": os.environ.get("FLASK_SECRET_KEY"),
}

GOOGLE_CLIENT_ID = GLOBAL_CONFIG["GOOGLE_CLIENT_ID"]
FLASK_SECRET_KEY = GLOBAL_CONFIG["FLASK_SECRET_KEY"]

SESSION_COOKIE = "id_token"

# one validator for the whole process; it owns the signing key cache
validator = Validator(options=ValidatorOptions.from_env())
