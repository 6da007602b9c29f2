"""CLIエントリーポイント"""
import argparse
import asyncio
import sys
from typing import Optional, Sequence

from .bootstrap import ServiceContainer
from .features.coordinates.transform import wgs84_to_gcj02
from .infrastructure.config.settings import Settings
from .shared.logging.config import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """引数パーサーを作成"""
    parser = argparse.ArgumentParser(
        description="行程座標のGCJ-02変換・逆ジオコーディングツール"
    )

    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="環境変数ファイルのパス（デフォルト: .env）",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="ログレベル",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    transform = subparsers.add_parser("transform", help="WGS-84座標をGCJ-02座標に変換")
    transform.add_argument("--lat", type=float, required=True, help="WGS-84緯度")
    transform.add_argument("--lng", type=float, required=True, help="WGS-84経度")

    resolve = subparsers.add_parser("resolve", help="座標の表示用住所を取得")
    resolve.add_argument(
        "points",
        nargs="+",
        metavar="LNG,LAT",
        help="WGS-84座標（経度,緯度）。複数指定した場合はバッチで問い合わせる",
    )
    resolve.add_argument("--progress", action="store_true", help="プログレスバーを表示")

    title = subparsers.add_parser("title", help="行程タイトルを生成")
    title.add_argument("--start", type=str, help="出発地の住所")
    title.add_argument("--end", type=str, help="到着地の住所")
    title.add_argument("--start-lng", type=float, help="出発地のWGS-84経度")
    title.add_argument("--start-lat", type=float, help="出発地のWGS-84緯度")
    title.add_argument("--end-lng", type=float, help="到着地のWGS-84経度")
    title.add_argument("--end-lat", type=float, help="到着地のWGS-84緯度")
    title.add_argument("--offline", action="store_true", help="逆ジオコーディングを使わない")

    return parser


def _split_point(point: str) -> tuple[str, str]:
    longitude, _, latitude = point.partition(",")
    return longitude, latitude


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    メインエントリーポイント

    Returns:
        int: 終了コード（0: 成功, 1: 失敗）
    """
    args = build_parser().parse_args(argv)

    try:
        settings = Settings(_env_file=args.env_file)

        if args.log_level:
            settings.log_level = args.log_level

        setup_logging(level=settings.log_level)

        if args.command == "transform":
            gcj = wgs84_to_gcj02(args.lat, args.lng)
            print(f"{gcj.longitude},{gcj.latitude}")
            return 0

        container = ServiceContainer(settings)
        try:
            if args.command == "resolve":
                points = [_split_point(point) for point in args.points]
                if len(points) == 1:
                    addresses = [container.geocoding_service.resolve_one(*points[0])]
                else:
                    addresses = container.geocoding_service.resolve_batch(
                        points, show_progress=args.progress
                    )
                for point, address in zip(args.points, addresses):
                    print(f"{point}\t{address}")

            elif args.command == "title":
                if args.offline:
                    print(container.title_generator.generate_title_sync(args.start, args.end))
                else:
                    print(
                        asyncio.run(
                            container.title_generator.generate_title_async(
                                args.start,
                                args.end,
                                args.start_lng,
                                args.start_lat,
                                args.end_lng,
                                args.end_lat,
                            )
                        )
                    )
        finally:
            container.close()

        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130  # SIGINT
    except Exception as e:
        logger.error(f"Application failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
