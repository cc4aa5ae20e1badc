import os
from dotenv import load_dotenv

load_dotenv(dotenv_path=".env")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

STRIPE_PRICE_IDS = {
    ("3day", False): os.getenv("STRIPE_PRICE_ID_3DAY_MONTHLY"),
    ("3day", True): os.getenv("STRIPE_PRICE_ID_3DAY_ANNUAL"),
    ("5day", False): os.getenv("STRIPE_PRICE_ID_5DAY_MONTHLY"),
    ("5day", True): os.getenv("STRIPE_PRICE_ID_5DAY_ANNUAL"),
    ("7day", False): os.getenv("STRIPE_PRICE_ID_7DAY_MONTHLY"),
    ("7day", True): os.getenv("STRIPE_PRICE_ID_7DAY_ANNUAL"),
}

# Frontend base URL used for checkout redirects
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")

# Break timer
TIMER_TICK_SECONDS = float(os.getenv("TIMER_TICK_SECONDS", "1.0"))  # 0 disables the background ticker
TIMER_SESSION_IDLE_SECONDS = float(os.getenv("TIMER_SESSION_IDLE_SECONDS", "1800"))  # inactive sessions older than this are dropped
FREE_TRIAL_DAYS = int(os.getenv("FREE_TRIAL_DAYS", "14"))
