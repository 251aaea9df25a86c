"""
Streamlit UI for FilterFlix.
Talks to the FastAPI server (default http://localhost:5555, FILTERFLIX_API_URL to override):
sign in / register / continue as guest, filter the catalog, and toggle favorites.

Run API:  python api.py
Run UI:   streamlit run streamlit_app.py
"""

# HTTP errors raised by the client when the API is unreachable
import requests  # network exceptions
# Streamlit framework to build a simple interactive UI
import streamlit as st  # UI primitives

from filterflix.client import client_for  # per-session API wrapper
from filterflix.config import Settings  # API URL from the environment
from filterflix.errors import FilterFlixError  # user-facing failures
from filterflix.favorites import FavoritesToggle, Session  # sign-in state + toggle contract

# Configure Streamlit page (title and layout width)
st.set_page_config(page_title="FilterFlix", layout="wide")  # wide layout
st.title("🎬 FilterFlix")  # friendly header

settings = Settings.from_env()  # read FILTERFLIX_* variables

# Sidebar contains connection + account controls
with st.sidebar:
	st.header("Settings")  # section label
	api_url = st.text_input("API URL", settings.api_url)  # where the API lives
# Kept in session_state so each browser session has its own client and HTTP connection pool
client = client_for(st.session_state, api_url)
toggle = FavoritesToggle(client)

if not client.health():
	st.error(f"API not reachable at {api_url}. Start it with `python api.py`.")
	st.stop()

session = st.session_state.get("session")  # Session or None

# ----- sign in ---------------------------------------------------------------
if session is None:
	login_tab, register_tab = st.tabs(["Sign in", "Create account"])
	with login_tab:
		with st.form("login"):
			username = st.text_input("Username")
			password = st.text_input("Password", type="password")
			col1, col2 = st.columns([1, 1])
			with col1:
				submitted = st.form_submit_button("Sign in", type="primary")
			with col2:
				as_guest = st.form_submit_button("Continue as guest")
		if submitted:
			try:
				st.session_state["session"] = client.login(username, password)
				st.rerun()
			except FilterFlixError as e:
				st.error(e.message)
		elif as_guest:
			st.session_state["session"] = Session.guest()
			st.rerun()
	with register_tab:
		with st.form("register"):
			new_username = st.text_input("Choose a username")
			new_password = st.text_input("Choose a password", type="password")
			created = st.form_submit_button("Create account")
		if created:
			try:
				client.register(new_username, new_password)
				st.success("Account created successfully. You can sign in now.")
			except FilterFlixError as e:
				st.error(e.message)
	st.stop()

with st.sidebar:
	label = "Guest" if session.is_guest else session.username
	st.caption(f"Signed in as **{label}**")
	if st.button("Sign out"):
		del st.session_state["session"]
		st.rerun()


def render_movie(movie: dict, key_prefix: str) -> None:
	"""Render one movie row with its favorite toggle."""
	c1, c2 = st.columns([4, 1])  # details column + button column
	with c1:
		year = f" ({movie['year']})" if movie.get("year") else ""
		st.subheader(f"{movie['title']}{year}")
		facts = [movie["service"]]
		if movie.get("rating") is not None:
			facts.append(f"rating {movie['rating']}")
		if movie.get("duration") is not None:
			facts.append(f"{movie['duration']} min")
		st.caption(" | ".join(facts))
		st.write(f"Genres: {', '.join(movie['genres'])}")
		if movie.get("director"):
			st.write(f"Director: {movie['director']}")
		if movie.get("cast"):
			st.write(f"Cast: {', '.join(movie['cast'][:5])}")
		if movie.get("description"):
			st.write(movie["description"])
	with c2:
		starred = toggle.is_favorite(session, movie)
		if st.button("★ Remove" if starred else "☆ Favorite", key=f"{key_prefix}-{movie['id']}"):
			try:
				toggle.toggle(session, movie)
				st.rerun()
			except FilterFlixError as e:
				st.warning(e.message)
	st.divider()  # separator


search_tab, favorites_tab = st.tabs(["Search", "Favorites"])

with search_tab:
	services = client.services()
	with st.form("search"):
		selected = st.multiselect(
			"Streaming services",
			options=[s["id"] for s in services],
			default=[s["id"] for s in services],
			format_func=lambda sid: next(s["name"] for s in services if s["id"] == sid),
		)
		genres = st.text_input("Genres", placeholder="e.g., comedy, sci")
		title = st.text_input("Title contains")
		c1, c2 = st.columns(2)
		with c1:
			min_duration = st.number_input("Minimum duration (min)", min_value=0, value=0, step=10)
		with c2:
			max_rating = st.slider("Maximum rating (0 = any)", min_value=0.0, max_value=10.0, value=0.0, step=0.5)
		run = st.form_submit_button("Search", type="primary")

	if run:
		with st.spinner("Searching..."):
			try:
				payload = client.search(
					services=selected,
					genres=genres,
					title=title,
					min_duration=min_duration or None,  # 0 means "not set" in this form
					max_rating=max_rating,
				)
				st.session_state["results"] = payload
			except FilterFlixError as e:
				st.error(e.message)
			except requests.RequestException as e:  # network/API errors
				st.error(f"API request failed: {e}")

	payload = st.session_state.get("results")
	if payload:
		st.success(f"Found {payload['count']} movies in {payload['elapsed_ms']} ms")
		for movie in payload["results"]:
			render_movie(movie, "result")

with favorites_tab:
	if session.is_guest:
		st.info("Sign in to save favorites.")
	elif not session.favorites:
		st.info("No favorites yet.")
	else:
		for movie in session.favorites:
			render_movie(movie, "fav")
