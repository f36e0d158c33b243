#!/usr/bin/env python3
from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from hammadde_usage import __version__
from hammadde_usage.config import DEFAULT_SETTINGS, ConfigError, load_settings
from hammadde_usage.export import (
    DETAIL_FILE_NAME,
    SUMMARY_FILE_NAME,
    format_number,
    format_percent,
    results_to_csv,
    summaries_to_csv,
)
from hammadde_usage.loader import ALL_FORMATS, load_table
from hammadde_usage.normalizer import table_warnings
from hammadde_usage.reconcile import analyse_project, filter_results, ingredient_totals
from hammadde_usage.recipe import process_recipe_records, recipe_ingredients
from hammadde_usage.sales import process_sales_records
from hammadde_usage.store import ProjectStore
from hammadde_usage.supply import process_supply_records, summarize_supply

logger = logging.getLogger(__name__)

UPLOAD_TYPES = [ext.lstrip(".") for ext in sorted(ALL_FORMATS)]
DATASETS = (
    ("recipe", "1. Reçeteler", "Ürün / hammadde / miktar listesi"),
    ("supply", "2. HAVI teslimatları", "Şubelere giden hammadde faturaları"),
    ("sales", "3. AktifPOS satışları", "Şube bazında ürün satış adetleri"),
)
ALL_OPTION = "Tümü"
PREVIEW_ROWS = 5


@st.cache_resource(show_spinner=False)
def get_store() -> ProjectStore:
    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.warning("Falling back to default settings: %s", exc)
        settings = DEFAULT_SETTINGS
    return ProjectStore(settings.store_path)


def ensure_state() -> None:
    st.session_state.setdefault("project_id", None)


def process_upload(kind: str, upload):
    table = load_table(upload.getvalue(), file_name=upload.name)
    if kind == "recipe":
        result = process_recipe_records(table.records)
    elif kind == "supply":
        result = process_supply_records(table.records)
    else:
        result = process_sales_records(table.records, table.preamble)
    result.warnings = table.warnings + result.warnings
    return result


def render_project_picker(store: ProjectStore):
    projects = store.list()
    with st.sidebar:
        st.header("Projeler")
        notes = table_warnings()
        if notes:
            with st.expander(f"Eşleme tablosu uyarıları ({len(notes)})"):
                for note in notes:
                    st.caption(note)
        name = st.text_input("Yeni proje adı", placeholder="Analiz DD.MM.YYYY SS:DD")
        if st.button("Proje oluştur", width="stretch"):
            project = store.create(name or None)
            st.session_state["project_id"] = project.id
            st.rerun()

        if not projects:
            st.caption("Henüz proje yok.")
            return None

        ids = [project.id for project in projects]
        labels = {project.id: f"{project.name} ({project.created_at[:10]})" for project in projects}
        current = st.session_state.get("project_id")
        index = ids.index(current) if current in ids else 0
        selected = st.selectbox("Proje", ids, index=index, format_func=labels.get)
        st.session_state["project_id"] = selected

        if st.button("Projeyi sil", width="stretch"):
            store.delete(selected)
            st.session_state["project_id"] = None
            st.rerun()
    return store.get(selected)


def render_uploads(store: ProjectStore, project) -> None:
    columns = st.columns(len(DATASETS))
    for column, (kind, title, caption) in zip(columns, DATASETS):
        with column:
            st.markdown(f"**{title}**")
            st.caption(caption)
            stored = len(project.entries(kind))
            st.metric("Kayıt", stored)
            upload = st.file_uploader("Dosya yükle", type=UPLOAD_TYPES, key=f"upload_{kind}_{project.id}")
            if upload is not None and st.button("İçe aktar", key=f"ingest_{kind}", width="stretch"):
                try:
                    result = process_upload(kind, upload)
                except Exception as exc:
                    st.error(f"Dosya okunamadı: {exc}")
                    continue
                if not result.ok:
                    st.error("Gerekli sütunlar bulunamadı veya veri satırı yok.")
                else:
                    store.update_dataset(project.id, kind, result.entries)
                    st.success(f"{len(result.entries)} kayıt kaydedildi.")
                    if kind == "recipe":
                        st.caption(f"{len(recipe_ingredients(result.entries))} farklı hammadde")
                    st.dataframe(
                        pd.DataFrame([entry.as_normalized() for entry in result.entries[:PREVIEW_ROWS]]),
                        hide_index=True,
                    )
                for warning in result.warnings:
                    st.warning(warning)


def results_frame(results) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Şube": item.branch,
                "Hammadde": item.resource,
                "Birim": item.unit,
                "Alınan": format_number(item.supplied),
                "Kullanım": format_number(item.demand),
                "Fark": format_number(item.difference),
                "Fark (%)": format_percent(item.difference_percent) if item.comparable else "N/A",
            }
            for item in results
        ]
    )


def render_analysis(store: ProjectStore, project) -> None:
    outcome = analyse_project(project.recipe_entries, project.supply_entries, project.sales_entries)
    if outcome.missing:
        st.info("Analiz için üç veri setinin de yüklenmesi gerekiyor. Eksik: " + ", ".join(outcome.missing))
        if project.recipe_entries and project.sales_entries:
            st.markdown("**Satışlara göre toplam hammadde ihtiyacı**")
            totals = ingredient_totals(project.recipe_entries, project.sales_entries)
            st.dataframe(pd.DataFrame([item.to_dict() for item in totals]), width="stretch", hide_index=True)
        return
    if outcome.error:
        st.error(outcome.error)
        return
    if not project.completed_steps[3]:
        store.update_step(project.id, 3, True)

    provinces = sorted({item.province for item in outcome.results if item.province})
    filters = st.columns(3)
    province = filters[0].selectbox("İl", [ALL_OPTION] + provinces)
    branch = filters[1].selectbox("Şube", [ALL_OPTION] + outcome.branches)
    resource = filters[2].selectbox("Hammadde", [ALL_OPTION] + outcome.resources)
    results = filter_results(
        outcome.results,
        province=None if province == ALL_OPTION else province,
        branch=None if branch == ALL_OPTION else branch,
        resource=None if resource == ALL_OPTION else resource,
    )
    summaries = [
        item
        for item in outcome.summaries
        if (province == ALL_OPTION or item.province == province) and (branch == ALL_OPTION or item.branch == branch)
    ]

    detail_tab, summary_tab, supply_tab = st.tabs(["Detaylı sonuçlar", "Şube özeti", "HAVI özeti"])
    with detail_tab:
        st.dataframe(results_frame(results), width="stretch", hide_index=True)
        st.download_button(
            "CSV indir",
            data=results_to_csv(results).encode("utf-8-sig"),
            file_name=DETAIL_FILE_NAME,
            mime="text/csv",
        )
    with summary_tab:
        st.dataframe(pd.DataFrame([item.to_dict() for item in summaries]), width="stretch", hide_index=True)
        st.download_button(
            "CSV indir",
            data=summaries_to_csv(summaries).encode("utf-8-sig"),
            file_name=SUMMARY_FILE_NAME,
            mime="text/csv",
        )
    with supply_tab:
        rows = summarize_supply(project.supply_entries)
        st.dataframe(pd.DataFrame([item.to_dict() for item in rows]), width="stretch", hide_index=True)


def main() -> None:
    st.set_page_config(page_title="Hammadde Kullanım Analizi", layout="wide")
    ensure_state()
    store = get_store()

    st.title("Hammadde Kullanım Analizi")
    st.caption(f"HAVI teslimatları ile reçete bazlı kullanımın şube karşılaştırması · v{__version__}")

    project = render_project_picker(store)
    if project is None:
        st.info("Başlamak için soldan bir proje oluşturun.")
        return

    render_uploads(store, project)
    st.divider()
    render_analysis(store, store.get(project.id))


if __name__ == "__main__":
    main()
