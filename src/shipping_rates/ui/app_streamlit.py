"""
Streamlit UI for the home delivery rate calculator.

Features:
- Country selector limited to the store's enabled countries
- Weight entry in g, kg, lb or oz
- Quote with resolution trace
- Configured tier table per country
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from shipping_rates.engine import RateQuotationEngine, NoMatchingTier
from shipping_rates.config.settings import get_settings
from shipping_rates.logging_config import setup_logging


st.set_page_config(
    page_title="Home Delivery Rates",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    settings = get_settings()
    setup_logging(settings.log_level)
    return RateQuotationEngine(settings=settings)


try:
    engine = get_engine()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: Store Configuration
# ============================================================================
with st.sidebar:
    st.header("🏬 Store Context")

    table = engine.table
    st.markdown(f"**Carrier:** {engine.settings.carrier}")
    st.markdown(f"**Method:** {engine.settings.method_label}")
    st.markdown(f"**Currency:** {table.currency}")
    st.caption(f"Rate table: {table.source or 'memory'}")

    st.divider()

    if st.button("🔄 Reload rates"):
        try:
            engine.reload_data()
            st.success("Rate table reloaded")
        except Exception as e:
            st.error(f"Reload failed: {e}")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Home Delivery Rate Calculator")
st.caption(f"{engine.settings.carrier} | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2 = st.tabs(["⚡ Quote", "📦 Rate Table"])


# ============================================================================
# TAB 1: QUOTE
# ============================================================================
with tab1:
    countries = {c.code: c.name for c in engine.enabled_countries()}

    col1, col2 = st.columns([1.2, 1.8], gap="large")

    with col1:
        with st.container(border=True):
            country_code = st.selectbox(
                "Country",
                options=list(countries),
                format_func=lambda code: countries[code],
            )
            c1, c2 = st.columns([3, 1])
            with c1:
                weight = st.number_input("Weight", min_value=0.0, value=1000.0, step=100.0)
            with c2:
                unit = st.selectbox("Unit", options=["g", "kg", "lb", "oz"])

    with col2:
        if country_code:
            try:
                quote = engine.quote(str(weight), country_code, unit=unit)
            except NoMatchingTier as e:
                st.error(f"Rate configuration error: {e.message}")
                quote = None

            if quote is not None and quote.ok:
                m1, m2, m3 = st.columns(3)
                m1.metric("Shipping", f"{quote.price} {quote.currency}")
                m2.metric("Method", quote.method)
                m3.metric("Tier", quote.tier.label())
            elif quote is not None:
                st.warning(quote.message)

            if quote is not None:
                with st.expander("🔍 Resolution Details", expanded=True):
                    for t in quote.trace:
                        if t.value:
                            st.caption(f"**{t.step}**: {t.description} = `{t.value}`")
                        else:
                            st.caption(f"**{t.step}**: {t.description}")


# ============================================================================
# TAB 2: RATE TABLE
# ============================================================================
with tab2:
    rows = []
    for country in engine.table.countries:
        for tier in engine.table.tiers_for(country.code):
            rows.append({
                "Country": country.name,
                "Code": country.code,
                "Enabled": country.enabled,
                "From (g)": str(tier.min_grams),
                "To (g)": "∞" if tier.max_grams is None else str(tier.max_grams),
                "Price": str(tier.price),
            })

    if rows:
        st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    else:
        st.info("No tiers configured")
