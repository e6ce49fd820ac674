import argparse
import json
import logging
import sys
from pathlib import Path

from src.api.deps import EmbedRulesAdapter, Settings, build_post_store, resolve_backend
from src.app_shell.config import ConfigError, validate_ops_rules
from src.components.embed import EmbedConfig, normalize_html
from src.components.posts import (
    GetPostInput,
    ListPostsInput,
    RenderPostInput,
    run_get,
    run_list,
    run_render,
)
from src.domain.errors import BlogError
from src.rules.loader import load_rules
from src.rules.models import Rules

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cli")


def handle_list(settings: Settings, rules: Rules, args: argparse.Namespace) -> None:
    store = build_post_store(settings, rules)
    try:
        posts = run_list(ListPostsInput(), store).posts
    finally:
        store.close()

    for post in posts:
        print(f"{post.id}  {post.created_at.isoformat()}  {post.title}")
    if not posts:
        print("No blog posts.")


def handle_show(settings: Settings, rules: Rules, args: argparse.Namespace) -> None:
    store = build_post_store(settings, rules)
    try:
        if args.rendered:
            out = run_render(RenderPostInput(post_id=args.id), store, rules=EmbedRulesAdapter(rules))
            post = out.post
        else:
            post = run_get(GetPostInput(post_id=args.id), store).post
    finally:
        store.close()
    print(json.dumps(post.to_document(), indent=2, ensure_ascii=False))


def handle_normalize(rules: Rules, args: argparse.Namespace) -> None:
    html = sys.stdin.read() if args.file == "-" else Path(args.file).read_text(encoding="utf-8")
    config = EmbedConfig(**rules.embeds.iframe_defaults.model_dump())
    result = normalize_html(html, config)
    logger.info("Normalized %d code block(s), %d iframe(s)", result.code_blocks, result.iframes)
    print(result.html)


def handle_check(settings: Settings, rules: Rules) -> None:
    backend = resolve_backend(settings, rules)
    validate_ops_rules(rules, settings.data_dir or settings.base_dir, backend)
    print(f"Configuration OK (backend={backend})")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Portfolio blog CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # list
    subparsers.add_parser("list", help="List blog posts, newest first")

    # show
    show_parser = subparsers.add_parser("show", help="Print one blog post as JSON")
    show_parser.add_argument("id", help="Blog post id")
    show_parser.add_argument(
        "--rendered", action="store_true", help="Normalize the description for display"
    )

    # normalize
    normalize_parser = subparsers.add_parser("normalize", help="Normalize an HTML file")
    normalize_parser.add_argument("file", help="HTML file path, or - for stdin")

    # check-config
    subparsers.add_parser("check-config", help="Validate rules and environment")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()

    try:
        rules = load_rules(settings.rules_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("%s", e)
        return 1

    try:
        if args.command == "list":
            handle_list(settings, rules, args)
        elif args.command == "show":
            handle_show(settings, rules, args)
        elif args.command == "normalize":
            handle_normalize(rules, args)
        elif args.command == "check-config":
            handle_check(settings, rules)
    except (BlogError, ConfigError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
