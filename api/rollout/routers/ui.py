from fastapi import APIRouter
from fastapi.responses import HTMLResponse

router = APIRouter(tags=["ui"])

PAGE = """<!doctype html>
<html>
<head><title>Rollout</title></head>
<body>
<h1>Rollout</h1>
<form id="check">
  <input name="feature" placeholder="feature" required>
  <input name="user" placeholder="user">
  <input name="group" placeholder="group">
  <button type="submit">Check</button>
</form>
<pre id="result"></pre>
<script>
document.getElementById("check").addEventListener("submit", async (event) => {
  event.preventDefault();
  const form = new FormData(event.target);
  const params = new URLSearchParams();
  for (const key of ["user", "group"]) {
    if (form.get(key)) params.set(key, form.get(key));
  }
  const resp = await fetch(`/features/${encodeURIComponent(form.get("feature"))}/active?${params}`);
  document.getElementById("result").textContent = JSON.stringify(await resp.json(), null, 2);
});
</script>
</body>
</html>
"""

@router.get("/internal/rollout-ui", response_class=HTMLResponse)
def home():
    return PAGE
