"""CLI for the Product Scoring Engine.

Provides command-line interface for scoring catalog products, computing
total cost of ownership and inspecting catalog data.
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .config import find_config_file, get_config, load_config, reset_config
from .engine import ScoringEngine, validate_catalog
from .logging_setup import setup_logging
from .schema import (
    LocationType,
    ProductReport,
    TcoBreakdown,
    UserEnvironment,
    VoltageStability,
)
from .tco import (
    calculate_tco,
    compare_tco,
    default_energy_kwh_month,
    hidden_cost_percent,
    rank_by_tco,
)

console = Console()


@click.group()
@click.version_option(version="1.0.0", prog_name="product-scorer")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to scorer-config.yaml (default: auto-discovered)"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable debug logging"
)
def main(config: Optional[Path], verbose: bool):
    """Product Scoring Engine.

    Scores products with the HMUM model, estimates lifespan and
    repairability from their components and projects total cost of
    ownership.
    """
    setup_logging("DEBUG" if verbose else "WARNING")

    config_path = config or find_config_file()
    if config_path:
        try:
            load_config(config_path)
        except Exception as e:
            console.print(f"[yellow]Warning:[/yellow] Could not load config: {escape(str(e))}")
            reset_config()
    else:
        reset_config()


def _engine(catalog: Optional[str]) -> ScoringEngine:
    return ScoringEngine.from_catalog(catalog, get_config())


@main.command("score")
@click.argument("product_id")
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Catalog YAML file or data directory (default: bundled catalog)"
)
@click.option(
    "--context", "-x", "contexts",
    multiple=True,
    help="Use-case context id (repeat to combine contexts)"
)
@click.option(
    "--location",
    type=click.Choice([l.value for l in LocationType]),
    default=LocationType.INLAND.value,
    help="Where the product will be used"
)
@click.option(
    "--voltage",
    type=click.Choice([v.value for v in VoltageStability]),
    default=VoltageStability.STABLE.value,
    help="Grid voltage stability"
)
@click.option("--temperature", type=float, default=25.0, help="Average temperature (°C)")
@click.option("--usage-hours", type=float, default=4.0, help="Daily usage hours")
@click.option("--energy-rate", type=float, help="Energy tariff in BRL/kWh")
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
@click.option(
    "--agent",
    is_flag=True,
    help="Output the compact payload served to third-party agents (JSON)"
)
def score_cmd(
    product_id: str,
    catalog: Optional[str],
    contexts: tuple,
    location: str,
    voltage: str,
    temperature: float,
    usage_hours: float,
    energy_rate: Optional[float],
    json_output: bool,
    agent: bool,
):
    """Score a catalog product.

    Examples:
        product-scorer score samsung-qn90c-65
        product-scorer score lg-c3-65 -x gamer_competitive -x cinema_dark_room
        product-scorer score consul-crm50-410 --location coastal --json-output
    """
    try:
        engine = _engine(catalog)

        if agent:
            print(json.dumps(engine.agent_payload(product_id), indent=2, ensure_ascii=False))
            return

        environment = UserEnvironment(
            location=LocationType(location),
            voltage_stability=VoltageStability(voltage),
            avg_temperature_celsius=temperature,
            daily_usage_hours=usage_hours,
        )

        if json_output:
            report = engine.score_product(
                product_id,
                contexts=list(contexts) or None,
                environment=environment,
                energy_rate=energy_rate,
            )
            print(report.model_dump_json(indent=2))
            return

        with console.status("Scoring product..."):
            report = engine.score_product(
                product_id,
                contexts=list(contexts) or None,
                environment=environment,
                energy_rate=energy_rate,
            )
        display_report(report)

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command("tco")
@click.option("--price", "-p", required=True, type=float, help="Purchase price (BRL)")
@click.option("--energy", "-e", type=float, help="Monthly consumption in kWh")
@click.option(
    "--category",
    help="Category whose typical consumption is used when --energy is omitted"
)
@click.option("--rate", "-r", type=float, help="Energy tariff in BRL/kWh")
@click.option("--years", "-y", type=float, help="Ownership horizon in years")
@click.option("--maintenance-rate", type=float, help="Annual maintenance share of price")
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
def tco_cmd(
    price: float,
    energy: Optional[float],
    category: Optional[str],
    rate: Optional[float],
    years: Optional[float],
    maintenance_rate: Optional[float],
    json_output: bool,
):
    """Calculate total cost of ownership for ad hoc inputs.

    Examples:
        product-scorer tco --price 3999 --energy 14
        product-scorer tco --price 3299 --category geladeira --years 10
    """
    cfg = get_config().tco
    try:
        if energy is None:
            energy = default_energy_kwh_month(category)

        result = calculate_tco(
            price=price,
            energy_kwh_month=energy,
            energy_rate=rate if rate is not None else cfg.energy_rate,
            lifespan_years=years if years is not None else cfg.lifespan_years,
            maintenance_rate=(
                maintenance_rate if maintenance_rate is not None else cfg.maintenance_rate
            ),
            inflation_rate=cfg.inflation_rate,
            discount_rate=cfg.discount_rate,
        )

        if json_output:
            print(result.model_dump_json(indent=2))
        else:
            display_tco(result, title=f"TCO ({energy:g} kWh/mês)")

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command("compare")
@click.argument("product_ids", nargs=-1, required=True)
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Catalog YAML file or data directory (default: bundled catalog)"
)
@click.option("--rate", "-r", type=float, help="Energy tariff in BRL/kWh")
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output raw JSON instead of formatted text"
)
def compare_cmd(product_ids: tuple, catalog: Optional[str], rate: Optional[float], json_output: bool):
    """Compare products by total cost of ownership.

    Each product is projected over its own estimated lifespan.

    Example:
        product-scorer compare samsung-qn90c-65 lg-c3-65 tcl-c735-65
    """
    try:
        engine = _engine(catalog)

        items = []
        for product_id in product_ids:
            tco = engine.product_tco(product_id, energy_rate=rate)
            if tco is None:
                console.print(f"[yellow]Skipping {product_id}: no price[/yellow]")
                continue
            items.append((product_id, tco))

        ranked = rank_by_tco(items)

        if json_output:
            payload = {
                "ranking": [{"product_id": pid, **tco.model_dump()} for pid, tco in ranked],
                "comparison": (
                    compare_tco(ranked[0], ranked[-1]).model_dump() if len(ranked) > 1 else None
                ),
            }
            print(json.dumps(payload, indent=2))
            return

        table = Table(show_header=True, header_style="bold", title="TCO Ranking")
        table.add_column("#", justify="right")
        table.add_column("Product", style="cyan", no_wrap=True)
        table.add_column("Price", justify="right")
        table.add_column("Energy", justify="right")
        table.add_column("Maint.", justify="right")
        table.add_column("Total", justify="right", style="bold")
        table.add_column("Years", justify="right")
        table.add_column("/month", justify="right")
        table.add_column("Hidden %", justify="right")

        for i, (pid, tco) in enumerate(ranked, 1):
            table.add_row(
                str(i),
                pid,
                f"R$ {tco.acquisition_cost:,}",
                f"R$ {tco.energy_cost:,}",
                f"R$ {tco.maintenance_cost:,}",
                f"R$ {tco.total_tco:,}",
                f"{tco.lifespan_years:g}",
                f"R$ {tco.tco_per_month:,}",
                f"{hidden_cost_percent(tco):.1f}%",
            )
        console.print(table)

        if len(ranked) > 1:
            comparison = compare_tco(ranked[0], ranked[-1])
            console.print(
                f"\n[green]{comparison.cheaper}[/green] saves "
                f"[bold]R$ {comparison.savings:,}[/bold] ({comparison.savings_percent:.1f}%) "
                f"over {comparison.more_expensive}"
            )

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command("validate")
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Catalog YAML file or data directory (default: bundled catalog)"
)
def validate_cmd(catalog: Optional[str]):
    """Validate a catalog file or data directory.

    Examples:
        product-scorer validate
        product-scorer validate -c my-catalog.yaml
    """
    cfg = get_config()
    is_valid, issues = validate_catalog(catalog, cfg)
    name = catalog or cfg.catalog.path or "bundled catalog"
    if is_valid:
        console.print(f"[green]✓ Catalog valid: {escape(str(name))}[/green]")
    else:
        console.print(f"[red]✗ Catalog invalid: {escape(str(name))}[/red]")
        for issue in issues:
            console.print(f"  - {escape(issue)}")

    sys.exit(0 if is_valid else 1)


@main.command("inspect")
@click.option(
    "--catalog", "-c",
    type=click.Path(exists=True),
    help="Catalog YAML file or data directory (default: bundled catalog)"
)
@click.option("--category", "category_id", help="Show details for a category")
@click.option("--component", "component_id", help="Show details for a component")
@click.option("--products", "list_products", is_flag=True, help="List products")
def inspect_cmd(
    catalog: Optional[str],
    category_id: Optional[str],
    component_id: Optional[str],
    list_products: bool,
):
    """Inspect the product catalog.

    View categories, components and products.
    """
    try:
        engine = _engine(catalog)
        repository = engine.repository

        console.print(f"\n[bold blue]Product Catalog[/bold blue]")
        console.print(f"Version: {repository.catalog.version}")
        console.print(
            f"Categories: {len(repository.list_categories())} | "
            f"Components: {len(repository.list_components())} | "
            f"Products: {repository.catalog.total_products}"
        )
        console.print()

        if category_id:
            category = repository.get_category(category_id)
            if category is None:
                console.print(f"[red]Category not found: {category_id}[/red]")
                return
            display_category_detail(category)
        elif component_id:
            component = repository.get_component(component_id)
            if component is None:
                console.print(f"[red]Component not found: {component_id}[/red]")
                return
            display_component_detail(component)
        elif list_products:
            table = Table(show_header=True, header_style="bold")
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Name")
            table.add_column("Category")
            table.add_column("Price", justify="right")
            table.add_column("Mapped")
            for product in repository.list_products():
                mapped = repository.get_mapping(product.id) is not None
                table.add_row(
                    product.id,
                    product.name[:40],
                    product.category_id,
                    f"R$ {product.price:,.0f}" if product.price is not None else "-",
                    "[green]yes[/green]" if mapped else "[dim]no[/dim]",
                )
            console.print(table)
        else:
            table = Table(show_header=True, header_style="bold")
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Name")
            table.add_column("Criteria", justify="right")
            table.add_column("Contexts", justify="right")
            table.add_column("Lifespan")
            table.add_column("Products", justify="right")
            for category in repository.list_categories():
                band = category.lifespan_band
                table.add_row(
                    category.id,
                    category.name,
                    str(len(category.criteria)),
                    str(len(category.contexts)),
                    f"{band.min_years:g}-{band.max_years:g} anos" if band else "-",
                    str(len(repository.list_products(category.id))),
                )
            console.print(table)

    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


def display_report(report: ProductReport):
    """Display a product report in formatted text."""
    hmum = report.hmum
    score_line = "n/a"
    if hmum is not None:
        color = "red" if hmum.vetoed else ("green" if hmum.score >= 7 else "yellow")
        score_line = f"[{color}]{hmum.score:.1f}[/{color}]"
        if hmum.best_context:
            score_line += f" (best context: {hmum.best_context})"

    verdict = report.explanation.verdict if report.explanation else ""
    console.print(Panel(
        f"[bold]{report.product_name}[/bold]\n\n"
        f"HMUM Score: {score_line}\n"
        f"Semantic Score: {report.semantic.final_score if report.semantic else 'n/a'}\n"
        f"Verdict: {verdict}",
        title=f"{report.product_id} ({report.category_id})",
    ))

    if hmum is not None:
        table = Table(show_header=True, header_style="bold", title="Criteria")
        table.add_column("ID", style="cyan")
        table.add_column("Criterion")
        table.add_column("Raw", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Weight", justify="right")
        table.add_column("Flags")
        for item in hmum.breakdown:
            table.add_row(
                item.criterion_id,
                item.label,
                str(item.raw_value) if item.raw_value is not None else "-",
                f"{item.normalized_value:.1f}",
                f"{item.final_weight:.3f}",
                ", ".join(f.value for f in item.flags),
            )
        console.print(table)

    if report.semantic is not None and report.semantic.radar:
        radar = ", ".join(f"{p.label} {p.score:.1f}" for p in report.semantic.radar)
        console.print(f"\n[bold]Radar:[/bold] {radar}")

    explanation = report.explanation
    if explanation is not None:
        if explanation.strengths:
            console.print("\n[bold]Strengths:[/bold]")
            for item in explanation.strengths:
                console.print(f"  [green]•[/green] {item}")
        if explanation.weaknesses:
            console.print("\n[bold]Weaknesses:[/bold]")
            for item in explanation.weaknesses:
                console.print(f"  [yellow]•[/yellow] {item}")
        if explanation.caveats:
            console.print("\n[bold]Caveats:[/bold]")
            for item in explanation.caveats:
                console.print(f"  [dim]•[/dim] {item}")

    sic = report.sic
    if sic is not None:
        console.print()
        tree = Tree("[bold cyan]Durability[/bold cyan]")
        if explanation is not None and explanation.lifespan_summary:
            tree.add(explanation.lifespan_summary)
            for line in explanation.lifespan_details:
                tree.add(f"[dim]{line}[/dim]")
        else:
            tree.add(f"Lifespan: {sic.estimated_lifespan_years:.1f} years")
        tree.add(
            f"Repairability: {sic.repairability_index.score:.1f}/10 "
            f"({sic.repairability_index.label})"
        )
        tree.add(f"Failure probability (5y): {sic.failure_probability_5y:.0%}")
        tree.add(f"Expected maintenance (5y): R$ {sic.expected_maintenance_cost_5y:,.0f}")
        tree.add(f"Confidence: {sic.calculation_confidence:.0%}")
        console.print(tree)

    if report.tco is not None:
        console.print()
        display_tco(report.tco)

    warnings = list(report.warnings)
    for part in (report.hmum, report.semantic, report.sic):
        if part is not None:
            warnings.extend(part.warnings)
    if warnings:
        console.print("\n[dim]Warnings:[/dim]")
        for warning in warnings:
            console.print(f"  [dim]• {warning}[/dim]")


def display_tco(tco: TcoBreakdown, title: str = "Total Cost of Ownership"):
    """Display a TCO breakdown."""
    table = Table(show_header=False, title=title)
    table.add_column("Item")
    table.add_column("Value", justify="right")
    table.add_row("Acquisition", f"R$ {tco.acquisition_cost:,}")
    table.add_row("Energy", f"R$ {tco.energy_cost:,}")
    table.add_row("Maintenance", f"R$ {tco.maintenance_cost:,}")
    table.add_row("[bold]Total[/bold]", f"[bold]R$ {tco.total_tco:,}[/bold]")
    table.add_row("Per year", f"R$ {tco.tco_per_year:,}")
    table.add_row("Per month", f"R$ {tco.tco_per_month:,}")
    table.add_row("Horizon", f"{tco.lifespan_years:g} years @ R$ {tco.energy_rate:g}/kWh")
    console.print(table)


def display_category_detail(category):
    """Display detailed category information."""
    tree = Tree(f"[bold cyan]{category.name}[/bold cyan] ({category.id})")

    criteria = tree.add("[bold]Criteria[/bold]")
    for c in category.criteria:
        extras = []
        if c.veto_threshold is not None:
            extras.append(f"veto ≤ {c.veto_threshold:g}")
        if c.is_hidden_truth:
            extras.append("hidden truth")
        suffix = f" [dim]({', '.join(extras)})[/dim]" if extras else ""
        criteria.add(f"{c.id} {c.label}: {c.weight:.2f} [{c.metacategory.value}]{suffix}")

    if category.extended_criteria:
        extended = tree.add("[bold]Extended Criteria[/bold]")
        for c in category.extended_criteria:
            extended.add(f"{c.id} {c.label} ({c.normalization.type.value})")

    meta = tree.add("[bold]Metacategory Weights[/bold]")
    for key, weight in category.metacategory_weights.items():
        meta.add(f"{key.label}: {weight:g}")

    if category.contexts:
        contexts = tree.add("[bold]Contexts[/bold]")
        for context in category.contexts:
            contexts.add(f"{context.id}: {context.label}")

    if category.lifespan_band:
        band = category.lifespan_band
        tree.add(f"Lifespan band: {band.min_years:g}-{band.max_years:g} years")

    console.print(tree)


def display_component_detail(component):
    """Display detailed component information."""
    tree = Tree(f"[bold cyan]{component.name}[/bold cyan] ({component.id})")

    reliability = tree.add("[bold]Reliability[/bold]")
    reliability.add(f"Weibull η: {component.reliability.weibull_eta_years:g} years")
    reliability.add(f"Weibull β: {component.reliability.weibull_beta:g}")
    if component.reliability.l10_life_hours:
        reliability.add(f"L10: {component.reliability.l10_life_hours:,.0f} hours")
    reliability.add(f"Data source: {component.data_source.value}")

    costs = tree.add("[bold]Repair[/bold]")
    costs.add(f"Cost: R$ {component.costs.total:,.0f}")
    costs.add(f"Parts: {component.repairability.parts_availability.value}")
    costs.add(f"Service manual: {'yes' if component.repairability.has_service_manual else 'no'}")

    if component.failure_modes:
        modes = tree.add("[bold]Failure Modes[/bold]")
        for mode in component.failure_modes:
            modes.add(mode)

    console.print(tree)


@main.command("init-config")
@click.option(
    "--out", "-o",
    type=click.Path(),
    default="scorer-config.yaml",
    help="Output path for the configuration file"
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Overwrite existing config file"
)
def init_config_cmd(out: str, force: bool):
    """Generate a default scorer configuration file.

    Example:
        product-scorer init-config --out my-config.yaml
    """
    from .config import save_default_config

    out_path = Path(out)
    if out_path.exists() and not force:
        console.print(f"[red]Error:[/red] Config file already exists: {out}")
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        save_default_config(out_path)
        console.print(f"[green]✓[/green] Config file created: {out}")
        console.print("\nThis file configures:")
        console.print("  • hmum - Veto penalty, context compression and union rules")
        console.print("  • semantic - Hidden-truth threshold and harmonic mean floor")
        console.print("  • sic - Repairability weights and forecast horizon")
        console.print("  • tco - Energy tariff, inflation and discount rates")
        console.print("  • catalog - Weight-sum policy and catalog location")
        console.print("\nThe scorer will look for config in this order:")
        console.print("  1. PRODUCT_SCORER_CONFIG environment variable")
        console.print("  2. ./scorer-config.yaml (current directory)")
        console.print("  3. ~/.config/product-scorer/config.yaml")
    except Exception as e:
        console.print(f"[red]Error creating config:[/red] {escape(str(e))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
