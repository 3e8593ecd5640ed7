"""Mock meal-kit storefront and auth site for offline funnel runs.

Two Flask apps served on different ports, so the account step really runs on
a second origin:

storefront (create_funnel_app):
- /                           promo overlay + zip code form
                              (?promo=off, ?validation=off for edge cases)
- /api/validate-zipcode/<zip> zip validation call the funnel waits on
- /quiz                       skip-all button, spinner, plan picker
- /en/meal-select             meal cards

auth (create_auth_app):
- /signup                     "Sign up with email" -> email -> password
- /api/signup                 records the submitted account

Both pages raise the kind of benign uncaught errors the live site throws
(a ResizeObserver error on load, an "auth ... null" error on the auth origin).
"""
from __future__ import annotations

from typing import Any, Dict, List

from flask import Flask, jsonify, request

# Accounts submitted to the mock auth site
SIGNUPS: List[Dict[str, Any]] = []

# Zip codes the storefront delivers to
SERVICEABLE_ZIP_CODES = {"10001", "10002", "11201", "94103"}

MEAL_PLAN_SIZES = (4, 6, 8, 12, 16)

PROMO_OVERLAY = """<div class="promo-popup" id="promo">
  <div class="panel"><p>50% off your first box</p><button class="close" onclick="document.getElementById('promo').remove()">Close</button></div>
</div>"""

HOME_PAGE = """<!doctype html>
<html>
<head><title>Mock Storefront</title>
<style>
.promo-popup { position: fixed; inset: 0; background: rgba(0,0,0,0.6); z-index: 10; }
.promo-popup .panel { background: #fff; margin: 120px auto; width: 320px; padding: 24px; }
</style>
</head>
<body>
__PROMO__
<h1>Chef-prepared meals</h1>
<input data-testid="funnel-start-form-zipcode-input" name="zipcode" placeholder="Zip code">
<button data-testid="input-zipcode-cta" type="button" onclick="validateZip()">Get started</button>
<p id="zip-error" style="display:none">We don't deliver there yet</p>
<script>
setTimeout(function () { throw new Error('ResizeObserver loop limit exceeded'); }, 0);
const ZIP_VALIDATION_ENABLED = __ZIP_VALIDATION__;
async function validateZip() {
  if (!ZIP_VALIDATION_ENABLED) { return; }
  const zip = document.querySelector('[data-testid="funnel-start-form-zipcode-input"]').value;
  const response = await fetch('/api/validate-zipcode/' + encodeURIComponent(zip));
  const body = await response.json();
  if (body.valid) {
    window.location.href = '/quiz';
  } else {
    document.getElementById('zip-error').style.display = 'block';
  }
}
</script>
</body>
</html>
"""

QUIZ_PAGE = """<!doctype html>
<html>
<head><title>Mock Storefront - Preferences</title></head>
<body>
<div id="quiz">
  <h2>What do you like to eat?</h2>
  <button data-testid="preferences-quiz-skip-all-button" onclick="skipAll()">Skip all</button>
</div>
<div id="plans" style="display:none">
  <h2>Choose your plan</h2>
  __PLAN_TOGGLES__
  <button data-testid="plan-select-continue-button" onclick="continueToSignup()">Continue</button>
</div>
<script>
let selectedPlan = null;
function skipAll() {
  document.getElementById('quiz').style.display = 'none';
  document.body.insertAdjacentHTML('beforeend',
    '<svg class="lucide lucide-loader-circle animate-spin" width="24" height="24"><circle cx="12" cy="12" r="10"></circle></svg>');
  setTimeout(function () {
    document.querySelector('svg.animate-spin').remove();
    document.getElementById('plans').style.display = 'block';
  }, 300);
}
function selectPlan(size) { selectedPlan = size; }
function continueToSignup() {
  if (selectedPlan === null) { return; }
  const returnTo = window.location.origin + '/en/meal-select';
  window.location.href = '__AUTH_ORIGIN__/signup?plan=' + selectedPlan + '&return_to=' + encodeURIComponent(returnTo);
}
</script>
</body>
</html>
"""

MEAL_SELECT_PAGE = """<!doctype html>
<html>
<head><title>Mock Storefront - Meal selection</title></head>
<body>
<h1>Pick your meals</h1>
__MEAL_CARDS__
</body>
</html>
"""

SIGNUP_PAGE = """<!doctype html>
<html>
<head><title>Mock Auth - Sign up</title></head>
<body>
<button id="email-start" onclick="showEmailStep()">Sign up with email</button>
<div id="email-step" style="display:none">
  <input data-testid="email" type="email">
  <button id="email-next" onclick="showPasswordStep()">Sign Up</button>
</div>
<div id="password-step" style="display:none">
  <input data-testid="password" type="password">
  <button data-testid="submit-form" onclick="submitSignup()">Create account</button>
</div>
<script>
function showEmailStep() {
  document.getElementById('email-start').style.display = 'none';
  document.getElementById('email-step').style.display = 'block';
}
function showPasswordStep() {
  if (!document.querySelector('[data-testid="email"]').value) { return; }
  document.getElementById('email-step').style.display = 'none';
  document.getElementById('password-step').style.display = 'block';
  setTimeout(function () { throw new Error('auth session probe returned null'); }, 0);
}
async function submitSignup() {
  const params = new URLSearchParams(window.location.search);
  await fetch('/api/signup', {
    method: 'POST',
    headers: {'Content-Type': 'application/json'},
    body: JSON.stringify({
      email: document.querySelector('[data-testid="email"]').value,
      password: document.querySelector('[data-testid="password"]').value,
      plan: params.get('plan')
    })
  });
  window.location.href = params.get('return_to');
}
</script>
</body>
</html>
"""

ERROR_PAGE = """<!doctype html>
<html>
<head><title>Mock Storefront - Broken widget</title></head>
<body>
<p>__MESSAGE__</p>
<script>
throw new Error(__MESSAGE_JS__);
</script>
</body>
</html>
"""


def create_funnel_app(auth_origin: str) -> Flask:
    """Create the mock storefront app; ``auth_origin`` is where signup lives."""
    app = Flask(__name__)
    app.config["TESTING"] = True

    @app.route("/")
    def home():
        # ?promo=off drops the overlay, ?validation=off makes the CTA a dead button
        promo = PROMO_OVERLAY if request.args.get("promo") != "off" else ""
        validation = "false" if request.args.get("validation") == "off" else "true"
        return HOME_PAGE.replace("__PROMO__", promo).replace("__ZIP_VALIDATION__", validation)

    @app.route("/api/validate-zipcode/<zip_code>")
    def validate_zipcode(zip_code: str):
        return jsonify({"zipcode": zip_code, "valid": zip_code in SERVICEABLE_ZIP_CODES}), 200

    @app.route("/quiz")
    def quiz():
        toggles = "\n  ".join(
            f'<button data-testid="plan-select-{size}-toggle" onclick="selectPlan({size})">{size} meals</button>'
            for size in MEAL_PLAN_SIZES
        )
        return QUIZ_PAGE.replace("__PLAN_TOGGLES__", toggles).replace("__AUTH_ORIGIN__", auth_origin.rstrip("/"))

    @app.route("/en/meal-select")
    def meal_select():
        cards = "\n".join(
            f'<div class="shadow-meal-card"><h3>{name}</h3></div>'
            for name in ("Chicken Tikka Masala", "Salmon Teriyaki", "Beef Bulgogi", "Mushroom Risotto")
        )
        return MEAL_SELECT_PAGE.replace("__MEAL_CARDS__", cards)

    @app.route("/broken-widget")
    def broken_widget():
        message = request.args.get("message", "Unexpected token")
        escaped = message.replace("\\", "\\\\").replace("'", "\\'")
        return ERROR_PAGE.replace("__MESSAGE_JS__", f"'{escaped}'").replace("__MESSAGE__", "Widget failed")

    return app


def create_auth_app() -> Flask:
    """Create the mock auth app."""
    app = Flask(__name__)
    app.config["TESTING"] = True

    @app.route("/signup")
    def signup():
        return SIGNUP_PAGE

    @app.route("/api/signup", methods=["POST"])
    def submit_signup():
        payload = request.get_json(silent=True) or {}
        if not payload.get("email") or not payload.get("password"):
            return jsonify({"error": "email and password are required"}), 422
        SIGNUPS.append(payload)
        return jsonify({"status": "created", "email": payload["email"]}), 201

    return app


def reset_mock_state():
    SIGNUPS.clear()
