"""Interface en ligne de commande FieldConcord."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from fieldconcord import __version__
from fieldconcord.aliases import AliasStore, DefaultMappings
from fieldconcord.config import Config, FieldConcordError
from fieldconcord.io_excel import fields_from_df, list_sheets, load_sheet, save_xlsx, targets_from_df
from fieldconcord.matching.linker import Linker
from fieldconcord.report import build_mapping_csv, build_matches_df, build_report_df, print_report_console

logger = logging.getLogger(__name__)


def cmd_list_sheets(filepath: str) -> int:
    """Liste les feuilles d'un fichier tableur."""
    sheets = list_sheets(filepath)
    print(f"Feuilles dans {filepath}:")
    for s in sheets:
        print(f"  - {s}")
    return 0


def cmd_run(
    source_path: str,
    target_path: str,
    *,
    config_path: str | None = None,
    alias_path: str | None = None,
    exact: bool = False,
    source_type: str | None = None,
    target_type: str | None = None,
    source_sheet: str | None = None,
    target_sheet: str | None = None,
    output_path: str | None = None,
    mapping_path: str | None = None,
) -> int:
    """Exécute le matching entre deux tables de champs."""
    config = Config.load(config_path) if config_path else Config()
    if alias_path:
        config.alias_file = alias_path
    if exact:
        config.solver = "hungarian"

    sources = fields_from_df(load_sheet(source_path, source_sheet or config.source_sheet))
    targets = targets_from_df(load_sheet(target_path, target_sheet or config.target_sheet))

    aliases = AliasStore.load(config.alias_file) if config.alias_file else None
    defaults = DefaultMappings(config.default_mappings, include_builtin=config.use_default_mappings)

    solver_config = config.solver_config()
    linker = Linker(
        solver_config,
        alias_lookup=aliases.lookup if aliases is not None else None,
        is_default_mapping=defaults.is_default_mapping,
    )
    owners = {
        "source_owner_type": source_type or Path(source_path).stem,
        "target_owner_type": target_type or Path(target_path).stem,
    }
    matches = linker.run(sources, targets, **owners)

    print_report_console(matches, sources, targets, solver_config)

    if mapping_path:
        build_mapping_csv(matches, mapping_path)
        print(f"Mapping écrit: {mapping_path}")

    if output_path:
        sheets = {
            "Matches": build_matches_df(matches),
            "REPORT": build_report_df(
                matches,
                sources,
                targets,
                solver_config,
                nb_candidates=len(linker.score_all(sources, targets, **owners)),
            ),
        }
        save_xlsx(output_path, sheets)
        print(f"Fichier de sortie: {output_path}")

    return 0


def cmd_teach(alias_path: str, owner: str, source_name: str, target_name: str) -> int:
    """Enregistre un alias permanent (type, champ source) -> champ cible."""
    store = AliasStore.load(alias_path)
    store.add_alias(owner, source_name, target_name)
    store.save()
    print(f"Alias créé: {source_name} → {target_name} ({owner})")
    return 0


def cmd_forget(alias_path: str, owner: str, source_name: str) -> int:
    """Supprime un alias appris."""
    store = AliasStore.load(alias_path)
    if not store.remove_alias(owner, source_name):
        print(f"Aucun alias pour {owner}.{source_name}")
        return 0
    store.save()
    print(f"Alias supprimé: {owner}.{source_name}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fieldconcord",
        description="Appariement de champs entre deux objets (fuzzy matching + affectation optimale)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Journalisation détaillée")

    subparsers = parser.add_subparsers(dest="command", help="Commandes")

    # list-sheets
    p_list = subparsers.add_parser("list-sheets", help="Lister les feuilles d'un tableur")
    p_list.add_argument("file", help="Fichier xlsx/ods/csv")

    # run
    p_run = subparsers.add_parser("run", help="Apparier deux tables de champs")
    p_run.add_argument("--source", "-s", required=True, help="Table des champs source")
    p_run.add_argument("--target", "-t", required=True, help="Table des champs cible")
    p_run.add_argument("--source-sheet", help="Feuille source")
    p_run.add_argument("--target-sheet", help="Feuille cible")
    p_run.add_argument("--source-type", help="Type propriétaire source (défaut: nom du fichier)")
    p_run.add_argument("--target-type", help="Type propriétaire cible (défaut: nom du fichier)")
    p_run.add_argument("--config", "-c", help="Fichier config JSON")
    p_run.add_argument("--aliases", "-a", help="Fichier d'alias JSON")
    p_run.add_argument("--exact", action="store_true", help="Algorithme hongrois (optimal) au lieu du glouton")
    p_run.add_argument("--output", "-o", help="Fichier xlsx de sortie")
    p_run.add_argument("--mapping", "-m", help="Chemin pour mapping.csv")

    # teach
    p_teach = subparsers.add_parser("teach", help="Apprendre un alias permanent")
    p_teach.add_argument("--aliases", "-a", required=True, help="Fichier d'alias JSON")
    p_teach.add_argument("--owner", required=True, help="Type propriétaire source")
    p_teach.add_argument("--source-name", required=True, help="Nom du champ source")
    p_teach.add_argument("--target-name", required=True, help="Nom du champ cible")

    # forget
    p_forget = subparsers.add_parser("forget", help="Supprimer un alias")
    p_forget.add_argument("--aliases", "-a", required=True, help="Fichier d'alias JSON")
    p_forget.add_argument("--owner", required=True, help="Type propriétaire source")
    p_forget.add_argument("--source-name", required=True, help="Nom du champ source")

    return parser


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "list-sheets":
            return cmd_list_sheets(args.file)

        if args.command == "run":
            return cmd_run(
                args.source,
                args.target,
                config_path=args.config,
                alias_path=args.aliases,
                exact=args.exact,
                source_type=args.source_type,
                target_type=args.target_type,
                source_sheet=args.source_sheet,
                target_sheet=args.target_sheet,
                output_path=args.output,
                mapping_path=args.mapping,
            )

        if args.command == "teach":
            return cmd_teach(args.aliases, args.owner, args.source_name, args.target_name)

        if args.command == "forget":
            return cmd_forget(args.aliases, args.owner, args.source_name)
    except FieldConcordError as e:
        logger.debug("Commande %s interrompue", args.command, exc_info=True)
        print(f"Erreur: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
