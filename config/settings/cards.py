from config.env import env

# Dotted path of the payload validator (must expose .validate(schema, payload))
CARDS_PAYLOAD_VALIDATOR = env.str(
    "CARDS_PAYLOAD_VALIDATOR", default="src.cards.validation.JsonSchemaPayloadValidator"
)

CARDS_AUDIT_RECENT_DEFAULT_LIMIT = env.int("CARDS_AUDIT_RECENT_DEFAULT_LIMIT", default=20)
CARDS_AUDIT_RECENT_MAX_LIMIT = env.int("CARDS_AUDIT_RECENT_MAX_LIMIT", default=200)

# Permission an API key needs to use the system form registration path
CARDS_SYSTEM_REGISTER_PERMISSION = "forms:register"
