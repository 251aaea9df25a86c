"""
FastAPI server exposing the FilterFlix API.
Endpoints:
- POST /api/register: create an account
- POST /api/login: check credentials, return {username, favorites}
- GET /api/user/{username}/favorites: read a user's favorites
- POST /api/favorites/{username}: add/remove one favorite
- GET /api/search: filter the catalog by services, genres, title, duration floor and rating ceiling
- GET /api/genres, /api/services, /api/stats: catalog metadata
- POST /api/catalog/refresh: reload every catalog source
- GET /health, /api/test: liveness checks

The catalog is loaded on the first search (or at startup with FILTERFLIX_PRELOAD_CATALOG=1).
Run with: python api.py   (or: uvicorn api:app --port 5555)
"""

# Import standard libraries for timing and typing
import time  # measure request latencies
from contextlib import asynccontextmanager  # app lifespan hook
from typing import Any, Dict, List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
from fastapi import Depends, FastAPI, Query, Request  # FastAPI primitives
from fastapi.exceptions import RequestValidationError  # malformed bodies / params
from fastapi.middleware.cors import CORSMiddleware  # browser clients on another port
from fastapi.responses import HTMLResponse, JSONResponse  # explicit responses
from pydantic import BaseModel  # request/response schema definitions

# Import our internal modules
from filterflix.account_store import AccountStore  # users + favorites
from filterflix.catalog import CatalogIndex  # load-once catalog cache
from filterflix.config import Settings, configure_logging  # env settings
from filterflix.data_loader import CatalogLoader  # CSV reader
from filterflix.errors import FilterFlixError, ValidationError  # error taxonomy
from filterflix.query_parser import QueryParser  # raw params -> SearchQuery
from filterflix.search_engine import SearchEngine  # filter engine

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger


# Pydantic model for register/login bodies; fields are optional so we can answer 400 ourselves
class Credentials(BaseModel):
	username: Optional[str] = None
	password: Optional[str] = None


# Pydantic model for a favorites mutation
class FavoriteRequest(BaseModel):
	movie: Optional[Dict[str, Any]] = None  # MovieRecord-shaped object
	action: Optional[str] = None  # "add" or "remove"


# Pydantic model that describes the shape of a single movie in responses
class MovieOut(BaseModel):
	id: str  # identity
	title: str
	genres: List[str]
	year: Optional[int] = None
	rating: Optional[float] = None
	duration: Optional[int] = None
	director: Optional[str] = None
	cast: List[str] = []
	description: Optional[str] = None
	service: str


# Pydantic model for the complete search response payload
class SearchResponse(BaseModel):
	success: bool = True
	count: int  # total matches before the optional limit
	elapsed_ms: float  # server-side search time in ms
	results: List[MovieOut]


# Dependency accessors: everything the routes need lives on app.state
def get_accounts(request: Request) -> AccountStore:
	return request.app.state.accounts


def get_catalog(request: Request) -> CatalogIndex:
	return request.app.state.catalog


def get_engine(request: Request) -> SearchEngine:
	return request.app.state.engine


def get_parser(request: Request) -> QueryParser:
	return request.app.state.parser


def create_app(
	settings: Optional[Settings] = None,
	catalog: Optional[CatalogIndex] = None,
	accounts: Optional[AccountStore] = None,
) -> FastAPI:
	"""Build the application with explicitly constructed (or injected) services."""
	settings = settings or Settings.from_env()
	if catalog is None:
		loader = CatalogLoader(settings.csv_dir, base_url=settings.catalog_base_url, timeout_s=settings.source_timeout_s)
		catalog = CatalogIndex(loader)
	if accounts is None:
		accounts = AccountStore(settings.users_file, bcrypt_rounds=settings.bcrypt_rounds, admin_password=settings.admin_password)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		configure_logging(settings.log_level)
		logger.info(f"[API] Startup | users={settings.users_file} | catalog={settings.catalog_base_url or settings.csv_dir}")
		if settings.preload_catalog:
			start = time.time()  # start timer for startup latency
			catalog.ensure_loaded()
			logger.info(f"[API] Catalog preloaded in {time.time() - start:.2f}s")
		yield
		logger.info("[API] Shutdown")

	# Instantiate the FastAPI application with metadata
	app = FastAPI(title="FilterFlix API", version="1.0.0", lifespan=lifespan)
	app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

	app.state.settings = settings
	app.state.catalog = catalog
	app.state.accounts = accounts
	app.state.engine = SearchEngine(catalog)
	app.state.parser = QueryParser(catalog.services)

	@app.exception_handler(FilterFlixError)
	async def handle_filterflix_error(request: Request, exc: FilterFlixError):
		"""Map taxonomy errors to status codes; server-side detail never reaches the client."""
		if exc.status_code >= 500:
			logger.error(f"[API] {request.method} {request.url.path} failed: {exc.message}")
			return JSONResponse(status_code=exc.status_code, content={"error": FilterFlixError.public_message, "code": exc.code})
		return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "code": exc.code})

	@app.exception_handler(RequestValidationError)
	async def handle_request_validation(request: Request, exc: RequestValidationError):
		logger.debug(f"[API] {request.method} {request.url.path} rejected: {exc.errors()}")
		return JSONResponse(status_code=400, content={"error": "Invalid request", "code": ValidationError.code})

	@app.exception_handler(Exception)
	async def handle_unexpected(request: Request, exc: Exception):
		logger.exception(f"[API] Unhandled error on {request.method} {request.url.path}")
		return JSONResponse(status_code=500, content={"error": FilterFlixError.public_message, "code": FilterFlixError.code})

	@app.get("/", response_class=HTMLResponse)
	async def root():
		return (
			"<h1>FilterFlix Backend</h1>"
			"<p>Available endpoints:</p>"
			"<ul>"
			"<li><strong>POST /api/register</strong> - Register new user</li>"
			"<li><strong>POST /api/login</strong> - User login</li>"
			"<li><strong>GET /api/search</strong> - Filter the catalog</li>"
			"<li><strong>GET /api/test</strong> - Connection test</li>"
			"</ul>"
		)

	# Simple health endpoint for readiness checks
	@app.get("/health")
	async def health(catalog: CatalogIndex = Depends(get_catalog)):
		"""Return minimal health info for liveness/readiness probes."""
		return {
			"status": "ok",  # constant indicator
			"catalog_loaded": catalog.is_loaded,  # True once the first search (or preload) happened
		}

	@app.get("/api/test")
	async def connection_test():
		return {"status": "Backend is working!"}

	@app.post("/api/register")
	def register(body: Credentials, accounts: AccountStore = Depends(get_accounts)):
		if not body.username or not body.password:
			raise ValidationError("Username and password required")
		accounts.register(body.username, body.password)
		return {"success": True}

	@app.post("/api/login")
	def login(body: Credentials, accounts: AccountStore = Depends(get_accounts)):
		user = accounts.authenticate(body.username or "", body.password or "")
		return {"success": True, "user": user}

	@app.get("/api/user/{username}/favorites")
	def get_favorites(username: str, accounts: AccountStore = Depends(get_accounts)):
		return {"success": True, "favorites": accounts.get_favorites(username)}

	@app.post("/api/favorites/{username}")
	def set_favorite(username: str, body: FavoriteRequest, accounts: AccountStore = Depends(get_accounts)):
		if not body.movie or not body.action:
			raise ValidationError("Movie and action required")
		favorites = accounts.set_favorite(username, body.movie, body.action)
		return {"success": True, "favorites": favorites}

	# Main search endpoint; numeric params arrive as text so the parser owns validation
	@app.get("/api/search", response_model=SearchResponse)
	def search(
		services: List[str] = Query(default=[], description="Service ids or names; repeat or comma-separate"),
		genres: str = Query(default="", description="Comma-separated genre fragments"),
		title: str = Query(default="", description="Title fragment"),
		min_duration: Optional[str] = Query(default=None, description="Minimum runtime in minutes"),
		max_rating: Optional[str] = Query(default=None, description="Maximum rating (0 disables)"),
		limit: Optional[int] = Query(default=None, ge=1, description="Return at most this many results"),
		engine: SearchEngine = Depends(get_engine),
		parser: QueryParser = Depends(get_parser),
	):
		"""Execute a filtered search and return matches in catalog order."""
		start = time.time()  # start timer
		flat_services = [s for raw in services for s in raw.split(",")]  # accept repeated and comma-joined
		query = parser.parse(
			genres=genres, title=title, services=flat_services, min_duration=min_duration, max_rating=max_rating
		)
		results = engine.search(query)
		elapsed_ms = (time.time() - start) * 1000  # compute ms
		logger.info(f"[API] /api/search served {len(results)} results in {elapsed_ms:.2f} ms")

		shown = results[:limit] if limit else results
		return SearchResponse(
			count=len(results),
			elapsed_ms=round(elapsed_ms, 2),
			results=[MovieOut(**m.to_dict()) for m in shown],
		)

	@app.get("/api/genres")
	def genres(catalog: CatalogIndex = Depends(get_catalog)):
		return {"success": True, "genres": list(catalog.known_genres())}

	@app.get("/api/services")
	async def services(catalog: CatalogIndex = Depends(get_catalog)):
		return {"success": True, "services": [{"id": s.id, "name": s.name} for s in catalog.services]}

	@app.get("/api/stats")
	def stats(catalog: CatalogIndex = Depends(get_catalog)):
		return {"success": True, "stats": catalog.statistics()}

	@app.post("/api/catalog/refresh")
	def refresh_catalog(catalog: CatalogIndex = Depends(get_catalog)):
		total = catalog.refresh()
		logger.info(f"[API] Catalog refreshed with {total} movies")
		return {"success": True, "total_movies": total}

	return app


app = create_app()


if __name__ == "__main__":
	import uvicorn  # ASGI server

	uvicorn.run("api:app", host="0.0.0.0", port=5555)
