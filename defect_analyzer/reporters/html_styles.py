"""
CSS styles for the HTML dashboard.
Kept apart from report_generator.py for better maintainability.
"""


def get_html_styles(c_success: str, c_warning: str, c_danger: str, c_info: str, c_text: str, c_light: str) -> str:
    """
    Generate CSS styles for the HTML dashboard.

    Args:
        c_success: Success color (e.g., "#28a745")
        c_warning: Warning color (e.g., "#ffc107")
        c_danger: Danger color (e.g., "#dc3545")
        c_info: Info color (e.g., "#17a2b8")
        c_text: Text color (e.g., "#333333")
        c_light: Light background color (e.g., "#f8f9fa")

    Returns:
        CSS styles as a string
    """
    return f"""
                /* Reset & Base */
                body {{ font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif; line-height: 1.5; color: {c_text}; margin: 0; padding: 0; background-color: #f4f6f9; }}
                .container {{ max-width: 1200px; margin: 20px auto; background: #ffffff; border-radius: 8px; overflow: hidden; box-shadow: 0 4px 6px rgba(0,0,0,0.1); }}

                /* Header */
                .header {{ background: linear-gradient(135deg, #2c3e50 0%, #3498db 100%); color: white; padding: 17px 24px; text-align: center; }}
                .report-title {{ margin: 0; font-size: 28px; font-weight: 600; line-height: 1.3; }}
                .report-meta {{ margin-top: 6px; opacity: 0.9; font-size: 16px; line-height: 1.4; }}
                .notice {{ background: #fff8e1; border-left: 4px solid {c_warning}; padding: 10px 16px; margin: 14px 20px; font-size: 14px; }}

                /* Dashboard Grid */
                .dashboard {{ display: flex; flex-wrap: wrap; padding: 14px 20px; gap: 14px; border-bottom: 1px solid #eee; }}
                .card {{ flex: 1; min-width: 160px; background: {c_light}; padding: 14px 17px; border-radius: 6px; text-align: center; border-top: 3px solid #ddd; }}
                .card.success {{ border-color: {c_success}; }}
                .card.danger {{ border-color: {c_danger}; }}
                .card.warning {{ border-color: {c_warning}; }}
                .card.info {{ border-color: {c_info}; }}
                .metric-value {{ font-size: 29px; font-weight: 700; margin: 5px 0; line-height: 1.2; }}
                .metric-label {{ font-size: 13px; text-transform: uppercase; color: #6c757d; letter-spacing: 0.5px; }}

                /* Tabs */
                .tabs {{ display: flex; gap: 4px; padding: 0 20px; border-bottom: 2px solid #eee; margin-top: 12px; }}
                .tab-button {{ background: none; border: none; padding: 10px 16px; font-size: 15px; cursor: pointer; color: #6c757d; border-bottom: 2px solid transparent; margin-bottom: -2px; }}
                .tab-button.active {{ color: {c_text}; border-bottom-color: {c_info}; font-weight: 600; }}
                .tab-panel {{ display: none; padding: 16px 20px; }}
                .tab-panel.active {{ display: block; }}

                /* Failure Cards */
                .failure-card {{ border: 1px solid #e5e7eb; border-left: 4px solid {c_danger}; border-radius: 6px; padding: 12px 16px; margin-bottom: 12px; }}
                .failure-card h4 {{ margin: 0 0 4px 0; font-size: 16px; }}
                .failure-meta {{ font-size: 13px; color: #6c757d; margin-bottom: 8px; }}
                .badge {{ display: inline-block; padding: 2px 8px; border-radius: 10px; font-size: 12px; font-weight: 600; color: #fff; margin-right: 6px; }}
                .badge.application_defect {{ background: {c_danger}; }}
                .badge.automation_script_defect {{ background: #6c757d; }}
                .badge.test_data_issue {{ background: {c_info}; }}
                .badge.environment_issue {{ background: #8b5cf6; }}
                .badge.configuration_issue {{ background: #f97316; }}
                .badge.flaky_test {{ background: {c_warning}; color: {c_text}; }}
                .badge.high {{ background: {c_danger}; }}
                .badge.medium {{ background: {c_warning}; color: {c_text}; }}
                .badge.low {{ background: {c_success}; }}
                pre.code {{ background: #1f2937; color: #e5e7eb; padding: 10px; border-radius: 4px; overflow-x: auto; font-size: 12px; white-space: pre-wrap; }}

                /* Tables */
                table.results {{ width: 100%; border-collapse: collapse; font-size: 14px; }}
                table.results th, table.results td {{ text-align: left; padding: 8px 10px; border-bottom: 1px solid #eee; }}
                table.results th {{ background: {c_light}; }}
                .status-pass {{ color: {c_success}; font-weight: 600; }}
                .status-fail {{ color: {c_danger}; font-weight: 600; }}
                .status-skip {{ color: {c_warning}; font-weight: 600; }}

                .footer {{ text-align: center; font-size: 12px; color: #6c757d; padding: 14px; border-top: 1px solid #eee; }}
"""
