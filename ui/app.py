# -----------------------------------------------------------------------------
# Streamlit Frontend for the Financial Formula Calculator
# Purpose:
#   Minimal UI to (1) browse and search the catalogue, (2) enter all but one
#   field of a formula and solve the blank one through the API, and (3) run
#   the transfer-pricing decision helper.
# -----------------------------------------------------------------------------

import os, json, requests, streamlit as st
from dotenv import load_dotenv

# Load .env to pick API_URL at runtime for local/remote backends
load_dotenv()
API_URL = os.getenv("API_URL", "http://127.0.0.1:8000")
TRANSFER_PRICING_ID = 22

st.set_page_config(page_title="Financial Formula Calculator", layout="centered")
st.title("Financial Formula Calculator")

@st.cache_data
def load_catalog():
    r = requests.get(f"{API_URL}/catalog", timeout=10)
    r.raise_for_status()
    return r.json()

@st.cache_data
def load_formula(formula_id: int):
    r = requests.get(f"{API_URL}/formulas/{formula_id}", timeout=10)
    r.raise_for_status()
    return r.json()

def _reset_fields(formula):
    for v in formula["variables"]:
        st.session_state.pop(f"f{formula['id']}_{v['name']}", None)

# ---------------- Sidebar: Catalogue + search ---------------------------------
try:
    catalog = load_catalog()
except requests.RequestException as e:
    st.error(f"Catalog error: {e}")
    st.stop()

with st.sidebar:
    st.subheader("Formulas")
    term = st.text_input("Search formulas").strip().lower()
    for cat in catalog["categories"]:
        items = [it for it in catalog["items"]
                 if it["category"] == cat and term in it["name"].lower()]
        if not items:
            continue
        st.markdown(f"**{cat}**")
        for it in items:
            if st.button(it["name"], key=f"pick_{it['id']}"):
                st.session_state["formula_id"] = it["id"]

formula_id = st.session_state.get("formula_id")
if formula_id is None:
    st.info("Pick a formula from the sidebar.")
    st.stop()

formula = load_formula(formula_id)
st.subheader(formula["name"])
st.caption(formula["description"])

# ---------------- Transfer pricing (decision helper) --------------------------
if formula["id"] == TRANSFER_PRICING_ID:
    scenario_var = next(v for v in formula["variables"] if v["kind"] == "select")
    scenario = st.selectbox(scenario_var["label"], scenario_var["options"], key="f22_scenario")
    r = requests.post(f"{API_URL}/transfer-pricing", json={"scenario": scenario, "values": {}}, timeout=10)
    required = r.json().get("required_fields", [])
    values = {}
    for v in formula["variables"]:
        if v["name"] in required:
            values[v["name"]] = st.text_input(v["label"], key=f"f22_{v['name']}")
    # Clear also returns the scenario selector to its first option
    st.button("Clear", key="clear_22", on_click=_reset_fields, args=(formula,))
    r = requests.post(f"{API_URL}/transfer-pricing", json={"scenario": scenario, "values": values}, timeout=10)
    res = r.json()
    if not res.get("ok"):
        st.error(res.get("error"))
    for line in res.get("display", []):
        if line.startswith("Warning:"):
            st.warning(line)
        elif line.startswith("Recommendation:"):
            st.success(line)
        else:
            st.write(line)
    st.stop()

# ---------------- Standard formula: fill all but one field --------------------
# Widget values can only be changed before the widgets are drawn, so clear
# and write-back of a solved value are applied on the next rerun.
if st.session_state.pop("pending_clear", False):
    _reset_fields(formula)
    st.session_state.pop("last_result", None)
fill = st.session_state.pop("pending_fill", None)
if fill and fill["formula_id"] == formula["id"]:
    st.session_state[f"f{formula['id']}_{fill['symbol']}"] = repr(fill["value"])

with st.form(f"form_{formula['id']}"):
    values = {}
    for v in formula["variables"]:
        placeholder = "Will be calculated" if v["computed"] else ""
        values[v["name"]] = st.text_input(v["label"], key=f"f{formula['id']}_{v['name']}",
                                          placeholder=placeholder)
    col1, col2 = st.columns(2)
    submit = col1.form_submit_button("Calculate")
    clear = col2.form_submit_button("Clear")

if clear:
    st.session_state["pending_clear"] = True
    st.rerun()

if submit:
    r = requests.post(f"{API_URL}/solve", json={"formula_id": formula["id"], "values": values}, timeout=10)
    if r.status_code != 200:
        st.error(f"Solve error: {r.text}")
        st.stop()
    res = r.json()
    st.session_state["last_result"] = res
    if res.get("ok") and res.get("answer"):
        st.session_state["pending_fill"] = {"formula_id": formula["id"], **res["answer"]}
        st.rerun()

res = st.session_state.get("last_result")
if res and res.get("formula", {}).get("id") == formula["id"]:
    if not res.get("ok", False):
        st.error(res.get("error"))
    elif res.get("answer"):
        st.success(res["display"])
    with st.expander("Trace"):
        st.code(json.dumps(res.get("trace", []), indent=2))
