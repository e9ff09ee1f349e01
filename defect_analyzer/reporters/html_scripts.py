"""
JavaScript code for the HTML dashboard.
Kept apart from report_generator.py for better maintainability.
"""


def get_html_scripts(default_tab: str) -> str:
    """
    Generate JavaScript code for the HTML dashboard.

    Args:
        default_tab: Id of the tab panel shown on load (e.g., "tab-failures")

    Returns:
        JavaScript code as a string
    """
    default_tab_escaped = default_tab.replace("'", "\\'")

    # Use triple quotes with string concatenation to avoid issues with JavaScript braces
    return (
        """            const DEFAULT_TAB = '""" + default_tab_escaped + """';

            function showTab(tabId) {
                document.querySelectorAll('.tab-panel').forEach(function(panel) {
                    panel.classList.toggle('active', panel.id === tabId);
                });
                document.querySelectorAll('.tab-button').forEach(function(button) {
                    button.classList.toggle('active', button.dataset.tab === tabId);
                });
            }

            document.addEventListener('click', function(event) {
                if (event.target.classList.contains('tab-button')) {
                    event.preventDefault();
                    showTab(event.target.dataset.tab);
                }
            });

            document.addEventListener('DOMContentLoaded', function() {
                showTab(DEFAULT_TAB);
            });
"""
    )
