"""Command-line interface for drive-analyzer."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from drive_analyzer.analysis.notify import Notifier
from drive_analyzer.exceptions import DriveAnalyzerError
from drive_analyzer.storage import (
    DocumentCache,
    JsonFileStore,
    SavedAnalysesRepository,
    SavedPromptsRepository,
    SettingsStore,
)

logger = logging.getLogger(__name__)

SETTING_NAMES = (
    "openrouter_api_key",
    "apify_api_token",
    "webhook_url",
    "custom_instructions",
    "preferred_model",
)


class ConsoleNotifier(Notifier):
    """Prints notifications to stderr."""

    def success(self, message: str) -> None:
        print(f"[ok] {message}", file=sys.stderr)

    def info(self, message: str) -> None:
        print(f"[info] {message}", file=sys.stderr)

    def warning(self, message: str) -> None:
        print(f"[warning] {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"[error] {message}", file=sys.stderr)


class _Context:
    def __init__(self, data_dir: str | None):
        self.store = JsonFileStore(data_dir)
        self.settings = SettingsStore(self.store)
        self.analyses = SavedAnalysesRepository(self.store)
        self.prompts = SavedPromptsRepository(self.store)
        self.cache = DocumentCache(self.store)
        self.notifier = ConsoleNotifier()


def _format_timestamp(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M")


# ---- Client construction ----

def _make_analyzer(ctx: _Context, backend: str):
    if backend == "anthropic":
        from drive_analyzer.llm.claude import AnthropicAnalyzer

        return AnthropicAnalyzer(api_key=ctx.settings.anthropic_api_key or None)
    key = ctx.settings.openrouter_api_key
    if not key:
        return None
    from drive_analyzer.llm.openrouter import OpenRouterAnalyzer

    return OpenRouterAnalyzer(api_key=key, model=ctx.settings.preferred_model)


def _make_drive_client(ctx: _Context):
    from drive_analyzer.google.auth import resolve_credentials
    from drive_analyzer.google.client import DriveClient

    creds = resolve_credentials(ctx.store.directory, ctx.settings.google_access_token)
    if creds is None:
        return None
    return DriveClient(creds)


def _make_apify_client(ctx: _Context):
    token = ctx.settings.apify_api_token
    if not token:
        return None
    from drive_analyzer.apify.client import ApifyClient

    return ApifyClient(token)


def _parse_drive_file(value: str):
    from drive_analyzer.google.models import DriveFile

    parts = value.split(":", 2)
    if len(parts) != 3 or not parts[0]:
        raise argparse.ArgumentTypeError(f"Expected ID:MIME:NAME, got {value!r}")
    return DriveFile(id=parts[0], mime_type=parts[1], name=parts[2] or parts[0])


# ---- Commands ----

def cmd_analyze(ctx: _Context, args) -> int:
    from drive_analyzer.analysis.pipeline import AnalysisPipeline, SourceBundle
    from drive_analyzer.apify.models import (
        ArticleExtractorSmartInput,
        BingSearchScraperInput,
        CrawlingOptions,
        RssXmlScraperInput,
    )

    prompt = args.prompt
    if args.template:
        from drive_analyzer.templates import get_template

        template = get_template(args.template)
        if template is None:
            ctx.notifier.error(f"Unknown template: {args.template}")
            return 1
        prompt = f"{template.content}\n\n{prompt}" if prompt else template.content

    text = args.text or ""
    if args.text_file:
        text = Path(args.text_file).read_text(encoding="utf-8")

    urls = list(args.url or [])
    articles = [ArticleExtractorSmartInput(url=u) for u in args.article or []]
    if args.actor == "article":
        articles += [ArticleExtractorSmartInput(url=u) for u in urls]
        urls = []

    sources = SourceBundle(
        urls=urls,
        crawling_options=CrawlingOptions(
            max_crawl_depth=args.max_depth,
            max_crawl_pages=args.max_pages,
            max_results=args.max_pages,
        ),
        direct_fetch=args.direct_fetch,
        articles=articles,
        bing_searches=[BingSearchScraperInput(search_queries=q) for q in args.bing or []],
        rss_feeds=[RssXmlScraperInput(rss_urls=[u]) for u in args.rss or []],
        pasted_text=text,
        local_files=[Path(p) for p in args.file or []],
        drive_files=list(args.drive_file or []),
        include_cached_documents=not args.no_cache,
        cache_documents=args.cache_documents,
    )

    drive_client = None
    if sources.drive_files or args.drive_folder:
        drive_client = _make_drive_client(ctx)
    if args.drive_folder and drive_client is not None:
        for folder_id in args.drive_folder:
            sources.drive_files.extend(
                drive_client.list_folder_contents(folder_id, include_subfolders=args.recursive)
            )

    web_fetcher = None
    if args.direct_fetch:
        from drive_analyzer.web.fetcher import WebFetcher

        web_fetcher = WebFetcher()

    pipeline = AnalysisPipeline(
        analyzer=_make_analyzer(ctx, args.backend),
        analyses=ctx.analyses,
        settings=ctx.settings,
        cache=ctx.cache,
        drive_client=drive_client,
        apify_client=_make_apify_client(ctx) if sources.needs_apify else None,
        web_fetcher=web_fetcher,
        notifier=ctx.notifier,
    )
    pipeline.add_status_listener(
        lambda s: logger.info(f"[{s.progress:3d}%] {s.current_step}") if s.is_processing else None
    )

    result = pipeline.run(
        prompt or "",
        sources,
        model=args.model,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
        include_analysis_ids=args.include_analysis,
        title=args.title,
    )
    if not result.ok:
        return 1
    print(result.value.ai_output)
    print(f"\nSaved as {result.value.id}", file=sys.stderr)
    return 0


def cmd_analyses(ctx: _Context, args) -> int:
    repo = ctx.analyses
    if args.action == "list":
        for a in repo.list():
            print(f"{a.id}\t{_format_timestamp(a.timestamp)}\t{a.title}")
        return 0
    if args.action == "show":
        analysis = repo.get(args.id)
        if analysis is None:
            ctx.notifier.error(f'Analysis with ID "{args.id}" not found.')
            return 1
        print(f"# {analysis.title}\n")
        print(f"Created: {_format_timestamp(analysis.timestamp)}")
        for source in analysis.sources:
            actor = f" via {source.actor}" if source.actor else ""
            print(f"- [{source.type}] {source.name}{actor}")
        print(f"\n## Prompt\n\n{analysis.prompt}\n\n## Output\n\n{analysis.ai_output}")
        return 0
    if args.action == "rename":
        if not repo.rename(args.id, args.title):
            ctx.notifier.error(f'Analysis with ID "{args.id}" not found.')
            return 1
        ctx.notifier.success("Analysis renamed successfully!")
        return 0
    if args.action == "delete":
        if not repo.delete(args.id):
            ctx.notifier.error(f'Analysis with ID "{args.id}" not found.')
            return 1
        ctx.notifier.success("Analysis deleted successfully!")
        return 0
    if args.action == "clear":
        repo.delete_all()
        ctx.notifier.success("All saved analyses have been deleted!")
        return 0
    if args.action == "export":
        if args.output:
            path = repo.export_to_file(args.id, args.output)
            ctx.notifier.success(f"Exported to {path}")
        else:
            print(repo.export_json(args.id))
        return 0
    if args.action == "import":
        result = repo.import_from_file(args.path)
        if not result.ok:
            if "already exists" in result.message:
                ctx.notifier.warning(result.message)
            else:
                ctx.notifier.error(result.message)
            return 1
        ctx.notifier.success(f'Analysis "{result.value.title}" imported successfully.')
        return 0
    return 1


def cmd_prompts(ctx: _Context, args) -> int:
    if args.action == "list":
        for p in ctx.prompts.list():
            print(f"{p.id}\t{p.title}")
        return 0
    if args.action == "add":
        result = ctx.prompts.add(args.title, args.content)
        if not result.ok:
            ctx.notifier.error(result.message)
            return 1
        ctx.notifier.success(f'Prompt "{args.title}" saved successfully')
        return 0
    if args.action == "delete":
        if not ctx.prompts.delete(args.id):
            ctx.notifier.error(f"Prompt {args.id} not found")
            return 1
        ctx.notifier.success("Prompt deleted")
        return 0
    return 1


def cmd_cache(ctx: _Context, args) -> int:
    cache = ctx.cache
    if args.action == "list":
        for doc in cache.list():
            flag = "*" if doc.include_in_prompts else " "
            print(f"{flag} {doc.id}\t{doc.type}\t{doc.name}\t{_format_timestamp(doc.cached_at)}")
        return 0
    if args.action == "add":
        from drive_analyzer.local.reader import MAX_DOC_CHARS, extract_text_from_file, guess_mime_type

        path = Path(args.path)
        content = extract_text_from_file(path)
        doc_id = cache.add(
            name=path.name,
            type="local",
            content=content[:MAX_DOC_CHARS],
            mime_type=guess_mime_type(path) or None,
            size=path.stat().st_size,
            include_in_prompts=args.include,
        )
        print(doc_id)
        return 0
    if args.action == "remove":
        cache.remove(args.id)
        return 0
    if args.action == "clear":
        cache.clear()
        ctx.notifier.success("Document cache cleared")
        return 0
    if args.action == "stats":
        stats = cache.stats()
        print(f"{stats['total_documents']} documents, {stats['formatted_size']}")
        return 0
    if args.action == "include":
        if not cache.set_include_in_prompts(args.id, not args.exclude):
            ctx.notifier.error(f"Cached document {args.id} not found")
            return 1
        return 0
    return 1


def cmd_settings(ctx: _Context, args) -> int:
    if args.action == "show":
        for name, value in ctx.settings.as_dict(mask_secrets=not args.reveal).items():
            print(f"{name}: {value}")
        return 0
    setattr(ctx.settings, args.name, args.value)
    ctx.notifier.success(f"Updated {args.name}")
    return 0


def cmd_templates(ctx: _Context, args) -> int:
    from drive_analyzer.templates import TEMPLATES, get_template, search_templates

    if args.action == "list":
        templates = search_templates(args.query) if args.query else TEMPLATES
        for t in templates:
            print(f"{t.id}\t[{t.category}]\t{t.title}")
        return 0
    template = get_template(args.id)
    if template is None:
        ctx.notifier.error(f"Unknown template: {args.id}")
        return 1
    print(template.content)
    return 0


def cmd_actor(ctx: _Context, args) -> int:
    client = _make_apify_client(ctx)
    if client is None:
        ctx.notifier.error("Apify API Token not found. Please set it in Settings.")
        return 1
    run_input = json.loads(args.input) if args.input else {}
    result = client.run_actor(args.actor_id, run_input)
    if not result.success:
        ctx.notifier.error(result.error or "Actor run failed")
        return 1
    if result.error:
        ctx.notifier.warning(result.error)
    print(json.dumps(result.data, indent=2, ensure_ascii=False))
    return 0


def cmd_google(ctx: _Context, args) -> int:
    from drive_analyzer.google.auth import DriveAuth

    auth = DriveAuth(ctx.store.directory, client_secret_file=args.client_secret)
    if args.action == "signin":
        auth.sign_in()
        ctx.notifier.success("Signed in to Google Drive")
        return 0
    if args.action == "signout":
        if auth.sign_out():
            ctx.notifier.success("Signed out of Google Drive")
        else:
            ctx.notifier.info("No stored Google token")
        return 0
    if args.action == "status":
        info = auth.token_info()
        if info is None:
            print("Not signed in")
            return 1
        print(f"Token: {info['token_path']}")
        print(f"Refresh token: {'yes' if info['has_refresh_token'] else 'no'}")
        for scope in info["scopes"]:
            print(f"  {scope}")
        for scope in info["missing_scopes"]:
            print(f"  missing: {scope}")
        return 0
    if args.action == "ls":
        client = _make_drive_client(ctx)
        if client is None:
            ctx.notifier.error("Please sign in to Google Drive first")
            return 1
        for f in client.list_folder_contents(
            args.folder_id, include_subfolders=args.recursive, max_files=args.max_files
        ):
            print(f"{f.id}:{f.mime_type}:{f.name}")
        return 0
    return 1


def cmd_models(ctx: _Context, args) -> int:
    from drive_analyzer.llm.models import AI_MODELS

    preferred = ctx.settings.preferred_model
    for model in AI_MODELS:
        marker = "*" if model.id == preferred else " "
        print(f"{marker} {model.id}\t{model.name}: {model.description}")
    return 0


# ---- Parser ----

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-analyzer",
        description="Analyze Google Drive files, web pages, local files and text with an LLM.",
    )
    parser.add_argument("--data-dir", help="Storage directory (default: ~/.drive-analyzer)")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Run an analysis")
    p.add_argument("prompt", nargs="?", default="")
    p.add_argument("--template", help="Prepend a built-in template")
    p.add_argument("--title")
    p.add_argument("--text", help="Pasted text")
    p.add_argument("--text-file", help="Read pasted text from a file")
    p.add_argument("--url", action="append", help="URL to crawl (repeatable)")
    p.add_argument("--actor", choices=("crawler", "article"), default="crawler",
                   help="Apify actor used for --url")
    p.add_argument("--direct-fetch", action="store_true", help="Fetch --url directly, without Apify")
    p.add_argument("--max-depth", type=int, default=1)
    p.add_argument("--max-pages", type=int, default=10)
    p.add_argument("--article", action="append", help="Article URL for the article extractor")
    p.add_argument("--bing", action="append", help="Bing search query")
    p.add_argument("--rss", action="append", help="RSS/XML feed URL")
    p.add_argument("--file", action="append", help="Local file (repeatable)")
    p.add_argument("--drive-file", action="append", type=_parse_drive_file,
                   metavar="ID:MIME:NAME", help="Google Drive file (repeatable)")
    p.add_argument("--drive-folder", action="append", help="Google Drive folder id")
    p.add_argument("--recursive", action="store_true", help="Include subfolders of --drive-folder")
    p.add_argument("--include-analysis", action="append", metavar="ID",
                   help="Include a saved analysis as context")
    p.add_argument("--no-cache", action="store_true", help="Skip cached documents flagged for prompts")
    p.add_argument("--cache-documents", action="store_true", help="Cache extracted documents")
    p.add_argument("--backend", choices=("openrouter", "anthropic"), default="openrouter")
    p.add_argument("--model")
    p.add_argument("--temperature", type=float)
    p.add_argument("--max-tokens", type=int)
    p.set_defaults(func=cmd_analyze)

    p = sub.add_parser("analyses", help="Manage saved analyses")
    a = p.add_subparsers(dest="action", required=True)
    a.add_parser("list")
    a.add_parser("show").add_argument("id")
    r = a.add_parser("rename")
    r.add_argument("id")
    r.add_argument("title")
    a.add_parser("delete").add_argument("id")
    a.add_parser("clear")
    e = a.add_parser("export")
    e.add_argument("id")
    e.add_argument("-o", "--output")
    a.add_parser("import").add_argument("path")
    p.set_defaults(func=cmd_analyses)

    p = sub.add_parser("prompts", help="Manage saved prompts")
    a = p.add_subparsers(dest="action", required=True)
    a.add_parser("list")
    r = a.add_parser("add")
    r.add_argument("title")
    r.add_argument("content")
    a.add_parser("delete").add_argument("id")
    p.set_defaults(func=cmd_prompts)

    p = sub.add_parser("cache", help="Manage the document cache")
    a = p.add_subparsers(dest="action", required=True)
    a.add_parser("list")
    r = a.add_parser("add")
    r.add_argument("path")
    r.add_argument("--include", action="store_true", help="Include in future prompts")
    a.add_parser("remove").add_argument("id")
    a.add_parser("clear")
    a.add_parser("stats")
    r = a.add_parser("include")
    r.add_argument("id")
    r.add_argument("--exclude", action="store_true")
    p.set_defaults(func=cmd_cache)

    p = sub.add_parser("settings", help="Show or change settings")
    a = p.add_subparsers(dest="action", required=True)
    a.add_parser("show").add_argument("--reveal", action="store_true")
    r = a.add_parser("set")
    r.add_argument("name", choices=SETTING_NAMES)
    r.add_argument("value", nargs="?", default="")
    p.set_defaults(func=cmd_settings)

    p = sub.add_parser("templates", help="Browse prompt templates")
    a = p.add_subparsers(dest="action", required=True)
    a.add_parser("list").add_argument("query", nargs="?")
    a.add_parser("show").add_argument("id")
    p.set_defaults(func=cmd_templates)

    p = sub.add_parser("google", help="Google Drive sign-in and browsing")
    p.add_argument("--client-secret", help="OAuth client secret JSON")
    a = p.add_subparsers(dest="action", required=True)
    a.add_parser("signin")
    a.add_parser("signout")
    a.add_parser("status")
    r = a.add_parser("ls", help="List files in a folder as ID:MIME:NAME")
    r.add_argument("folder_id")
    r.add_argument("--recursive", action="store_true")
    r.add_argument("--max-files", type=int, default=20)
    p.set_defaults(func=cmd_google)

    p = sub.add_parser("models", help="List available models")
    p.set_defaults(func=cmd_models)

    p = sub.add_parser("actor", help="Run an arbitrary Apify actor")
    a = p.add_subparsers(dest="action", required=True)
    r = a.add_parser("run")
    r.add_argument("actor_id")
    r.add_argument("--input", help="Actor input as JSON")
    p.set_defaults(func=cmd_actor)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    ctx = _Context(args.data_dir)
    try:
        return args.func(ctx, args)
    except DriveAnalyzerError as e:
        ctx.notifier.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
