from config.env import env

# /api/verify-card answers any origin itself
CORS_URLS_REGEX = r"^/api/(?!verify-card).*$"
CORS_ALLOW_CREDENTIALS = True

CORS_ALLOWED_ORIGINS = []
ENV_CORS_ALLOWED_ORIGINS = env.str("CORS_ALLOWED_ORIGINS", default="")
for origin in ENV_CORS_ALLOWED_ORIGINS.split(","):
    if origin.strip():
        CORS_ALLOWED_ORIGINS.append(f"{origin}".strip().lower())

# Headers sent on every /api/verify-card response
CARDS_VERIFY_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}
